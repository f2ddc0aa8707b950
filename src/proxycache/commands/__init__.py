"""Built-in CLI sub-commands for proxycache.

* :mod:`~proxycache.commands.serve` -- run the caching proxy.
* :mod:`~proxycache.commands.cache` -- inspect and clear persisted entries.
* :mod:`~proxycache.commands.config` -- view and modify global settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``cache`` and ``config``) or a plain callback
function registered directly on the root app (for single commands like
``serve``).
"""
