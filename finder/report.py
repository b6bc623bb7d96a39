"""
Console output for policy search results.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.segment import Segment, Segments

# Results and diagnostics share stdout
console = Console()


def configure_logging(verbose=False, target=None):
    """
    Route log records to the console through rich.

    Args:
        verbose (bool): Enable debug output
        target (Console): Console to log to (default: the module console)
    """
    handler = RichHandler(
        console=target or console,
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    # botocore is very chatty at debug level
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


class Reporter:
    """Prints permitting policies and their attachments as they arrive."""

    def __init__(self, output=None):
        self.console = output or console

    def _print(self, text):
        self.console.print(text, highlight=False, soft_wrap=True, emoji=False)

    def header(self, action, resource):
        self._print(
            f"The action [bold]{escape(action)}[/bold] on the resource "
            f"[bold]{escape(resource)}[/bold] is allowed by the following policies:"
        )

    def inline_policy(self, info, error=None):
        line = (
            f"[cyan](user inline policy)[/cyan] UserName=[yellow]{escape(info.user_name)}[/yellow] "
            f"PolicyName=[yellow]{escape(info.policy_name)}[/yellow]"
        )
        self._print(line + self._error_suffix(error))

    def managed_policy(self, info, error=None):
        line = f"Arn=[yellow]{escape(info.arn)}[/yellow] VersionId=[yellow]{escape(info.version_id)}[/yellow]"
        self._print(line + self._error_suffix(error))

    def attachment(self, target):
        line = self.console.render_str(
            f"is attached to {target.kind.value}: "
            f"Name=[green]{escape(target.name)}[/green] Id={escape(target.id)}",
            highlight=False,
            emoji=False,
        )
        # Text rendering expands tabs, so the indent goes out as a raw segment
        segments = [Segment("\t"), *line.render(self.console), Segment.line()]
        self.console.print(Segments(segments), soft_wrap=True)

    @staticmethod
    def _error_suffix(error):
        if error is None:
            return ""
        return f" [red]error={escape(str(error))}[/red]"
