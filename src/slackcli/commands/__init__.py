"""Built-in CLI sub-commands for slackcli.

* :mod:`~slackcli.commands.auth` -- run the OAuth login and print the
  authorize URL.

Each module exports a :class:`typer.Typer` sub-application registered on
the root app in :func:`slackcli.app.main`.
"""
