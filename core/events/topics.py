"""Canonical registry of event bus topics used by the movement subsystem.

Each entry is declared as an :class:`~enum.Enum` member and documents the
producer, the intended consumers and the payload guarantees for the associated
event.  Importing modules should rely on the enum members (e.g.
``topics.MovementTopic.MOVEMENT_STARTED``) rather than raw strings.
"""

from __future__ import annotations

from enum import Enum

__all__ = ["EventTopic", "MapTopic", "MovementTopic"]


class EventTopic(str, Enum):
    """Base class for every topic published on the event bus."""


class MovementTopic(EventTopic):
    """Topics emitted by :class:`modules.movement.system.MovementSystem`."""

    MOVEMENT_STARTED = "MovementStarted"
    """Published when ``move_to_tile`` installs a new path on an entity.

    Subscribers: render layer, unit bookkeeping, analytics.
    Guarantees: ``entity``, ``from_tile``, ``to_tile`` and ``path_length``.
    """

    STEP_REACHED = "StepReached"
    """Published each time an entity snaps onto an intermediate path cell.

    Guarantees: ``entity``, ``tile`` and ``path_step`` (index just reached).
    """

    MOVEMENT_ENDED = "MovementEnded"
    """Published once the final path cell is reached and the entity is idle.

    Guarantees: ``entity`` and ``tile`` (final cell).
    """

    PATH_NOT_FOUND = "PathNotFound"
    """Published when ``move_to_tile`` cannot reach the requested tile.

    This is a normal outcome, not an error.
    Guarantees: ``entity``, ``from_tile`` and ``to_tile``.
    """


class MapTopic(EventTopic):
    """Topics emitted by :class:`modules.maps.components.TileGrid`."""

    LAYER_ADDED = "LayerAdded"
    """Guarantees: ``index``, ``title`` and ``draw_order``."""

    LAYER_REMOVED = "LayerRemoved"
    """Guarantees: ``index`` and ``title`` of the removed layer."""

    LAYER_VISIBILITY_CHANGED = "LayerVisibilityChanged"
    """Guarantees: ``index`` and ``visible``."""

    LAYER_DRAW_ORDER_CHANGED = "LayerDrawOrderChanged"
    """Guarantees: ``index`` and ``draw_order``."""
