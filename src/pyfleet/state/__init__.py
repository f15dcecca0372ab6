"""Client state layer.

:class:`FleetStore` caches the lists a signed-in user works with and is
the only component that catches gateway failures: a failed load logs and
leaves the cache as it was, a failed mutation logs and rolls back.
"""

from pyfleet.state.events import ChangeSource, StoreChange, StoreSection
from pyfleet.state.store import FleetStore

__all__ = ["ChangeSource", "FleetStore", "StoreChange", "StoreSection"]
