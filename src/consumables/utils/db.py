"""Schema management for relational providers (postgresql in production)."""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

_RELATIONAL_PROVIDERS = ("sqlite", "postgresql")


def _relational_providers(domain: Domain):
    for name, provider in domain.providers.items():
        if provider.conn_info["provider"] in _RELATIONAL_PROVIDERS:
            yield name, provider


def _stored_elements(domain: Domain):
    """Aggregates, child entities (inventory entries) and projections (operation log)."""
    registry = domain.registry
    for records in (registry.aggregates, registry.entities, registry.projections):
        for _, record in records.items():
            yield record.cls


def setup_db(domain: Domain):
    """Create the ledger tables on every relational provider."""
    with domain.domain_context():
        for name, provider in _relational_providers(domain):
            for element in _stored_elements(domain):
                if element.meta_.provider == name:
                    # Building the DAO registers the table with the provider's metadata
                    domain.repository_for(element)._dao  # noqa: B018

            if hasattr(domain, "_outbox_repos") and name in domain._outbox_repos:
                domain._outbox_repos[name]._dao  # noqa: B018

            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("Ledger schema created", provider=name)


def drop_db(domain: Domain):
    """Drop the ledger tables on every relational provider."""
    with domain.domain_context():
        for name, provider in _relational_providers(domain):
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("Ledger schema dropped", provider=name)
