"""Inspect commands -- examine what an assembly would produce.

Provides the ``assemblist inspect`` sub-command group with read-only
commands: the entries each archive would contain (computed with a dry
run, nothing is written), the packaged descriptor references, and the
container descriptor handlers available to descriptors.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from assemblist.output import OutputFormat, error, format_data, get_output, info


inspect_app = typer.Typer(no_args_is_help=True)


@inspect_app.command("entries")
def inspect_entries(
    ctx: typer.Context,
    project_dir: Optional[Path] = typer.Option(
        None, "--project-dir", "-C", help="Directory holding assemblist.yaml (default: cwd)."
    ),
    descriptors: Optional[list[str]] = typer.Option(
        None, "--descriptor", "-d", help="Descriptor file or URL (repeatable)."
    ),
    descriptor_refs: Optional[list[str]] = typer.Option(
        None, "--descriptor-ref", "-r", help="Packaged descriptor id (repeatable)."
    ),
    formats: Optional[list[str]] = typer.Option(
        None, "--format", "-f", help="Archive format; overrides the descriptor's (repeatable)."
    ),
) -> None:
    """List the entries every archive would contain.

    Runs all assembly phases in dry-run mode and shows one row per entry
    with its archive path and where its content comes from.

    Example::

        assemblist inspect entries
        assemblist inspect entries -r bin -f zip --json
    """
    from assemblist.assembler import AssemblyArchiver, assembly_formats
    from assemblist.commands.single import load_config
    from assemblist.descriptor import read_assemblies
    from assemblist.exceptions import AssemblistError
    from assemblist.formatting.paths import get_distribution_name
    from assemblist.handlers import HandlerRegistry

    overrides = {
        "descriptors": descriptors or None,
        "descriptor_refs": descriptor_refs or None,
        "formats": formats or None,
    }
    global_cfg, config = load_config(ctx, project_dir, overrides)

    registry = HandlerRegistry()
    rows: list[list[str]] = []
    try:
        registry.discover(global_cfg)
        archiver = AssemblyArchiver(registry=registry)
        for assembly in read_assemblies(config):
            full_name = get_distribution_name(assembly, config)
            for fmt in assembly_formats(assembly, config):
                for entry in archiver.list_entries(assembly, full_name, fmt, config):
                    rows.append([assembly.id, fmt, entry.path, entry.describe()])
    except AssemblistError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not rows:
        info("No entries.")
        return

    output = get_output()
    if output.format == OutputFormat.JSON:
        format_data([
            {"assembly": assembly_id, "format": fmt, "path": path, "source": source}
            for assembly_id, fmt, path, source in rows
        ])
        return
    output.print_table(
        ["Assembly", "Format", "Path", "Source"], rows, title=f"Entries ({len(rows)})"
    )


@inspect_app.command("descriptors")
def inspect_descriptors() -> None:
    """List the packaged descriptor references usable with ``--descriptor-ref``.

    Example::

        assemblist inspect descriptors
    """
    from assemblist.descriptor.loader import list_builtin_descriptors, load_builtin_descriptor

    rows: list[list[str]] = []
    for ref in list_builtin_descriptors():
        document = load_builtin_descriptor(ref)
        formats = document.get("formats") or []
        if isinstance(formats, str):
            formats = [formats]
        rows.append([ref, document.get("id", ref), ", ".join(formats)])

    get_output().print_table(["Reference", "Id", "Formats"], rows, title="Packaged descriptors")


@inspect_app.command("handlers")
def inspect_handlers() -> None:
    """List the container descriptor handler hints a descriptor may use.

    Includes built-in handlers and those registered by installed packages
    under the ``assemblist.handlers`` entry-point group.

    Example::

        assemblist inspect handlers
    """
    from assemblist.config import load_global_config
    from assemblist.handlers.registry import BUILTIN_HANDLERS, HandlerRegistry

    registry = HandlerRegistry()
    registry.discover(load_global_config())

    rows = [
        [hint, "built-in" if hint in BUILTIN_HANDLERS else "plugin"]
        for hint in registry.hints()
    ]
    get_output().print_table(["Hint", "Origin"], rows, title="Container descriptor handlers")
