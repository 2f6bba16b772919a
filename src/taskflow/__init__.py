"""
taskflow: a single-user task tracker core.

Subpackages:
- storage: key-value backends and the persistence gateway (three named slots)
- tasks: data model, repository, query engine, snapshot transfer
- core: ports (Protocols) and the application coordinator
- cli / connectors: composition root and a console presentation shell
"""

__version__ = "0.1.0"
