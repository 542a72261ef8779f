"""Model files: factor spaces and constraints described in YAML.

A model file is the boundary through which a factor space reaches the
engines without any code. Example::

    factors:
      browser: [chrome, firefox, safari]
      os: [linux, mac, windows]
      locale: [en, de]
      network: [wifi, lte]

    constraints:
      - name: no_safari_on_linux
        exclude: {browser: safari, os: linux}
      - name: windows_means_english
        require:
          if: {os: windows}
          then: {locale: en}
      - name: single_legacy_flag
        at_most_one:
          - {browser: safari}
          - {os: windows}
      - name: no_de_on_lte
        exclude: {locale: de, network: lte}
        factors: [browser]

    settings:
      engine: ipo
      strength: 2

Factors may also be given as a list of ``{name, levels, description}``.
A constraint's optional ``factors`` list widens its scope: it stays
undecided until those factors are assigned too.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from coverforge.constraints import Constraint, ConstraintSet, at_most_one, exclude, require
from coverforge.errors import ConfigurationError, CoverForgeError, ErrorCode, ErrorContext
from coverforge.factors import FactorSpace, FactorSpaceBuilder

logger = logging.getLogger(__name__)


@dataclass
class Model:
    """A parsed model file.

    Attributes:
        space: The declared factor space.
        constraints: The declared constraints as one oracle.
        settings: Raw ``settings`` block, applied by the caller.
    """

    space: FactorSpace
    constraints: ConstraintSet = field(default_factory=ConstraintSet)
    settings: dict[str, Any] = field(default_factory=dict)


def _invalid(message: str, **extra: Any) -> ConfigurationError:
    return ConfigurationError(
        message=message,
        error_code=ErrorCode.INVALID_MODEL,
        context=ErrorContext(extra=extra),
        suggestions=[
            "Declare factors as a mapping of name to a list of levels",
            "Give every constraint a 'name' and one of: exclude, require, at_most_one",
        ],
    )


def _parse_factors(raw: Any) -> FactorSpace:
    builder = FactorSpaceBuilder()

    if isinstance(raw, Mapping):
        entries = [{"name": name, "levels": levels} for name, levels in raw.items()]
    elif isinstance(raw, list):
        entries = raw
    else:
        raise _invalid("'factors' must be a mapping or a list", got=type(raw).__name__)

    for entry in entries:
        if not isinstance(entry, Mapping) or "name" not in entry:
            raise _invalid(f"Factor entry must have a 'name': {entry!r}")
        levels = entry.get("levels")
        if not isinstance(levels, list):
            raise _invalid(f"Levels of factor '{entry['name']}' must be a list", factor=entry["name"])
        builder.add(str(entry["name"]), levels, str(entry.get("description", "")))

    return builder.build()


def _parse_constraint(raw: Any, space: FactorSpace) -> Constraint:
    if not isinstance(raw, Mapping) or "name" not in raw:
        raise _invalid(f"Constraint entry must have a 'name': {raw!r}")

    name = str(raw["name"])
    description = str(raw.get("description", ""))

    if "exclude" in raw:
        values = raw["exclude"]
        if not isinstance(values, Mapping) or not values:
            raise _invalid(f"Constraint '{name}': 'exclude' must be a non-empty mapping")
        referenced = [values]
        constraint = exclude(name, description, **{str(k): v for k, v in values.items()})
    elif "require" in raw:
        body = raw["require"]
        if (
            not isinstance(body, Mapping)
            or not isinstance(body.get("if"), Mapping)
            or not isinstance(body.get("then"), Mapping)
        ):
            raise _invalid(f"Constraint '{name}': 'require' needs 'if' and 'then' mappings")
        referenced = [body["if"], body["then"]]
        constraint = require(name, body["if"], body["then"], description)
    elif "at_most_one" in raw:
        conditions = raw["at_most_one"]
        if not isinstance(conditions, list) or not all(isinstance(c, Mapping) for c in conditions):
            raise _invalid(f"Constraint '{name}': 'at_most_one' must be a list of mappings")
        referenced = conditions
        constraint = at_most_one(name, conditions, description)
    else:
        raise _invalid(f"Constraint '{name}' has no exclude/require/at_most_one clause")

    scope = raw.get("factors")
    if scope is not None:
        if not isinstance(scope, list):
            raise _invalid(f"Constraint '{name}': 'factors' must be a list of factor names")
        unknown = [n for n in scope if str(n) not in space.names]
        if unknown:
            raise _invalid(f"Constraint '{name}' is scoped to unknown factors: {unknown}", constraint=name)
        constraint.factors = list(dict.fromkeys([*(constraint.factors or []), *map(str, scope)]))

    for condition in referenced:
        try:
            space.validate(condition)
        except CoverForgeError as e:
            raise _invalid(f"Constraint '{name}': {e.message}", constraint=name) from e

    return constraint


def parse_model(data: Any) -> Model:
    """Build a Model from already-loaded YAML/JSON data.

    Raises:
        ConfigurationError: If the data does not describe a valid model.
    """
    if not isinstance(data, Mapping) or "factors" not in data:
        raise _invalid("Model must be a mapping with a 'factors' key")

    space = _parse_factors(data["factors"])

    constraints = ConstraintSet()
    for raw in data.get("constraints") or []:
        constraints.add(_parse_constraint(raw, space))

    settings = data.get("settings") or {}
    if not isinstance(settings, Mapping):
        raise _invalid("'settings' must be a mapping")

    logger.debug(f"Parsed model: {space!r}, {constraints!r}")
    return Model(space=space, constraints=constraints, settings=dict(settings))


def load_model(path: str | Path) -> Model:
    """Load a model file.

    Raises:
        ConfigurationError: If the file is missing, not YAML, or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise _invalid(f"Model file not found: {path}", path=str(path))

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise _invalid(f"Model file {path} is not valid YAML: {e}", path=str(path)) from e

    return parse_model(data)
