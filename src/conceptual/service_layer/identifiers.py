"""Identifier generator used by concepts to allocate entity identifiers."""

from conceptual.adapters.id_generators import ULIDGenerator
from conceptual.domain.ids import ID
from conceptual.interfaces.id_generator import IdGenerator

_generator: IdGenerator = ULIDGenerator()


def fresh_id() -> ID:
    """Return an identifier never returned before in this process.

    Identifiers are ULIDs: 26-character strings that stay unique across
    processes too, since they embed a timestamp and 80 random bits. Callers
    must not rely on their ordering.
    """
    return ID(_generator.new_id())
