from protean.domain import Domain
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url


def database_config(url: str | None) -> dict:
    """Provider settings for ``url``; ``None`` selects the in-memory provider."""
    if not url:
        return {"provider": "memory"}
    return {"provider": make_url(url).get_backend_name(), "database_uri": url}


def configure_database(domain: Domain, url: str | None):
    """Point the domain's default provider at ``url`` and reconnect."""
    domain.config["databases"]["default"] = database_config(url)
    domain.providers._initialize()


def setup_db(domain: Domain):
    """Setup database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])

                # Ensure live entities are loaded and registered with SQLAlchemy
                #   We do this by accessing the _dao attribute of the repository, forcing
                #   the entity to be loaded and registered with SQLAlchemy.
                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                for _, entity_record in domain.registry.entities.items():
                    if entity_record.cls.meta_.provider == provider.name:
                        domain.repository_for(entity_record.cls)._dao  # noqa: B018

                provider._metadata.create_all(engine)
                engine.dispose()


def drop_db(domain: Domain):
    """Drop database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
                engine.dispose()
