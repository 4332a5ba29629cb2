"""Built-in CLI sub-commands for phoxy.

* :mod:`~phoxy.commands.cache` -- inspect, fetch through, and clear the
  response cache.
* :mod:`~phoxy.commands.config` -- view and modify global settings.

Each module exports a :class:`typer.Typer` sub-application registered on
the root app in :mod:`phoxy.app`.
"""
