"""The CLI's commands, keyed by name.

Each command is a module under ui_inventory/commands/ exposing a `command`
object (a Command). The module docstring is the command's full help text,
shown by `ui-inventory help <command>`; its first line is the summary in
`ui-inventory --help`.
"""

from types import ModuleType

from ui_inventory.commands import capture, crop, trace
from ui_inventory.core.types import Command

_MODULES: dict[str, ModuleType] = {module.command.name: module for module in (capture, crop, trace)}


def discover() -> dict[str, Command]:
    """All commands, keyed by name."""
    return {name: module.command for name, module in _MODULES.items()}


def get(name: str) -> Command:
    """Get a command by name."""
    if name not in _MODULES:
        raise KeyError(f'Unknown command: {name}. Available: {", ".join(sorted(_MODULES))}')
    return _MODULES[name].command


def doc(name: str) -> str:
    """The command's module docstring, stripped; empty if it has none."""
    get(name)
    return (_MODULES[name].__doc__ or '').strip()
