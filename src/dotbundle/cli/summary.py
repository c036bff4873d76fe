"""Rich summary panels printed at the end of mutating commands."""

from rich.panel import Panel
from rich.text import Text

from dotbundle.core.snapshots import PackageOutcome, RestoreReport
from dotbundle.core.transaction import TransactionReport, TransactionState


def format_transaction_summary(report: TransactionReport) -> Panel:
    """Format the final box of an install or upgrade.

    Example:
        >>> stderr_console().print(format_transaction_summary(report))
    """
    done = report.state is TransactionState.DONE
    clean = done and not report.warnings

    lines: list[Text] = []
    if clean:
        lines.append(Text("Status: Success", style="green"))
    elif done:
        lines.append(Text(f"Status: Done with {len(report.warnings)} warning(s)", style="yellow"))
    else:
        lines.append(Text(f"Status: {report.state.value.capitalize()}", style="yellow"))

    lines.append(Text(f"Bundles: {', '.join(report.bundles) or '(none)'}"))
    if report.added and report.previous:
        lines.append(Text(f"Added: {', '.join(report.added)}", style="green"))
    if report.removed:
        lines.append(Text(f"Removed: {', '.join(report.removed)}", style="red"))
    if report.skipped:
        lines.append(Text(f"No setup step: {', '.join(report.skipped)}", style="dim"))
    if report.snapshot is not None:
        lines.append(Text(f"Rollback point: {report.snapshot.tag_name}", style="blue"))

    if report.warnings:
        lines.append(Text(""))
        lines.append(Text("Warnings:", style="yellow bold"))
        for warning in report.warnings:
            lines.append(Text(f"  {warning}", style="yellow"))

    title = f"{report.mode.value.capitalize()} complete" if done else "Nothing changed"
    border = "green" if clean else "yellow"
    return Panel(Text("\n").join(lines), title=title, border_style=border, padding=(1, 2))


def format_restore_summary(report: RestoreReport) -> Panel:
    """Format the final box of a rollback (or its dry-run preview)."""
    lines: list[Text] = []
    verb = "Would reset" if report.dry_run else "Reset"
    lines.append(Text(f"{verb} to: {report.target_tag} ({report.target_hash[:12]})"))
    if report.previous_hash:
        lines.append(Text(f"From: {report.previous_hash[:12]}", style="dim"))

    if report.discarded_commits:
        heading = "Commits that would be undone:" if report.dry_run else "Commits undone:"
        lines.append(Text(heading))
        for commit in report.discarded_commits:
            lines.append(Text(f"  {commit}", style="dim"))
    else:
        lines.append(Text("No commits to undo.", style="dim"))

    if report.package_outcome is not PackageOutcome.NOT_REQUESTED:
        lines.append(Text(f"Packages: {report.package_outcome.value}"))
        if report.extra_packages:
            label = "would be removed" if report.dry_run else "not in snapshot"
            lines.append(Text(f"Packages {label}:"))
            for entry in report.extra_packages:
                lines.append(Text(f"  {entry}", style="red"))

    if report.safety_snapshot is not None:
        lines.append(Text(""))
        lines.append(
            Text(f"Undo with: dotbundle rollback {report.safety_snapshot.tag_name}", style="blue")
        )

    if report.warnings:
        lines.append(Text(""))
        for warning in report.warnings:
            lines.append(Text(f"Warning: {warning}", style="yellow"))

    title = "Rollback preview" if report.dry_run else "Rollback complete"
    border = "yellow" if report.warnings or report.dry_run else "green"
    return Panel(Text("\n").join(lines), title=title, border_style=border, padding=(1, 2))
