# services/state.py
from meetrelay.services.registry import SessionRegistry

# ----------------------------------------------------------------------------
# Global meeting state
# ----------------------------------------------------------------------------

# Process-wide registry of live meetings, keyed by meeting code.
# Only touched from the event loop thread.
registry: SessionRegistry = SessionRegistry()
