"""Domain initialization and configuration."""

from protean.domain import Domain

from consumables.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
consumables = Domain(name="consumables")
