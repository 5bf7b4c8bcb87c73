# The closed set of eight layers, keyed by layer number.

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from neurolint.layers.adaptive import AdaptiveLayer
from neurolint.layers.base import Layer, Rule
from neurolint.layers.components import ComponentsLayer
from neurolint.layers.configuration import ConfigurationLayer
from neurolint.layers.hydration import HydrationLayer
from neurolint.layers.nextjs import FrameworkMigrationLayer
from neurolint.layers.patterns import PatternsLayer
from neurolint.layers.security import SecurityLayer
from neurolint.layers.testing import ReactTestingLayer

LAYERS: tuple[Layer, ...] = (
    ConfigurationLayer(),
    PatternsLayer(),
    ComponentsLayer(),
    HydrationLayer(),
    FrameworkMigrationLayer(),
    ReactTestingLayer(),
    AdaptiveLayer(),
    SecurityLayer(),
)

LAYER_REGISTRY: Mapping[int, Layer] = MappingProxyType({layer.number: layer for layer in LAYERS})

VALID_LAYERS = frozenset(LAYER_REGISTRY)


def all_rules() -> dict[str, Rule]:
    """Every rule of every layer, by rule id."""
    rules: dict[str, Rule] = {}
    for layer in LAYERS:
        rules.update(layer.rules_by_id)
    return rules


def layer_info() -> list[dict[str, Any]]:
    return [layer.info() for layer in LAYERS]
