from rich.console import Console
from rich.pretty import pprint

from argoshell import *

shell = Command(name="demo", help="argoshell demo shell", shell=True, fancy=True, colorful=True)
helper(shell)


@shell.command(aliases=("cp",))
def copy(context):
    """copy files to a destination"""
    pprint(context)


copy.argument("sources", multiple=True, required=True)
copy.argument("--destination", "-d", required=True)
copy.argument("--retries", "-r", ArgumentKind.INTEGER)
copy.argument("--force", "-f", ArgumentKind.BOOLEAN)

remote = Command(name="remote", parent=shell, help="manage remotes")


@remote.command
def add(context):
    """register a remote"""
    pprint(context)


add.argument("name", required=True)
add.argument("url", required=True)


if __name__ == '__main__':
    console = Console()
    while True:
        try:
            line = console.input("[bold]demo>[/] ")
        except (EOFError, KeyboardInterrupt):
            break
        if line.strip() in ("exit", "quit"):
            break
        invoke(shell, line)
