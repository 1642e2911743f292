"""Single command -- build the project's assemblies.

Implements the ``assemblist single`` top-level command. It resolves the
assembler configuration (project file, environment, CLI flags), discovers
third-party container descriptor handlers, reads every configured
descriptor, and writes one archive per assembly per format.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from assemblist.output import OutputFormat, error, format_data, get_output, info, success


def load_config(
    ctx: typer.Context,
    project_dir: Optional[Path],
    overrides: dict[str, Any],
):  # noqa: ANN202
    """Resolve ``(GlobalConfig, AssemblerConfig)`` for a command.

    Applies the root ``--dry-run`` flag on top of *overrides*.

    Raises:
        typer.Exit: With the error's exit code when the configuration
            cannot be resolved.
    """
    from assemblist.config import resolve_config
    from assemblist.exceptions import AssemblistError

    if ctx.obj and ctx.obj.get("dry_run"):
        overrides = {**overrides, "dry_run": True}
    try:
        return resolve_config(project_dir=project_dir, cli_overrides=overrides)
    except AssemblistError as exc:
        error(f"Config error: {exc}")
        raise typer.Exit(code=exc.exit_code) from None


def single_command(
    ctx: typer.Context,
    project_dir: Optional[Path] = typer.Option(
        None, "--project-dir", "-C", help="Directory holding assemblist.yaml (default: cwd)."
    ),
    descriptors: Optional[list[str]] = typer.Option(
        None, "--descriptor", "-d", help="Descriptor file or URL (repeatable)."
    ),
    descriptor_refs: Optional[list[str]] = typer.Option(
        None, "--descriptor-ref", "-r", help="Packaged descriptor id, e.g. 'bin' (repeatable)."
    ),
    descriptor_dir: Optional[Path] = typer.Option(
        None, "--descriptor-dir", help="Read every descriptor in this directory."
    ),
    formats: Optional[list[str]] = typer.Option(
        None, "--format", "-f", help="Archive format; overrides the descriptor's (repeatable)."
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Directory the archives are written to."
    ),
    final_name: Optional[str] = typer.Option(
        None, "--final-name", help="Base file name of the archives."
    ),
    classifier: Optional[str] = typer.Option(
        None, "--classifier", help="Classifier appended to the archive name."
    ),
    no_append_assembly_id: bool = typer.Option(
        False, "--no-append-assembly-id", help="Do not append the assembly id to the archive name."
    ),
    include_site: bool = typer.Option(
        False, "--include-site", help="Add the site directory to every assembly."
    ),
    tar_long_file_mode: Optional[str] = typer.Option(
        None, "--tar-long-file-mode", help="warn, fail, truncate, gnu, posix, or omit."
    ),
    ignore_missing_descriptor: bool = typer.Option(
        False, "--ignore-missing-descriptor", help="Skip assembly when no descriptor is configured."
    ),
) -> None:
    """Build every assembly of the project.

    Descriptors come from the flags above or, when none are given, from
    the project file. Each assembly is written once per format.

    Raises:
        typer.Exit: With the exit code of the failure category (descriptor,
            configuration, archive, or plugin error).

    Example::

        assemblist single --descriptor-ref bin
        assemblist single -d src/assembly/dist.xml -f zip -f tar.gz
        assemblist --dry-run single -r src
    """
    from assemblist.assembler import AssemblyArchiver, assemble
    from assemblist.exceptions import AssemblistError
    from assemblist.handlers import HandlerRegistry

    overrides: dict[str, Any] = {
        "descriptors": descriptors or None,
        "descriptor_refs": descriptor_refs or None,
        "descriptor_source_directory": descriptor_dir,
        "formats": formats or None,
        "output_directory": output_dir,
        "final_name": final_name,
        "classifier": classifier,
        "append_assembly_id": False if no_append_assembly_id else None,
        "include_site": True if include_site else None,
        "tar_long_file_mode": tar_long_file_mode,
        "ignore_missing_descriptor": True if ignore_missing_descriptor else None,
    }
    global_cfg, config = load_config(ctx, project_dir, overrides)

    try:
        registry = HandlerRegistry()
        registry.discover(global_cfg)
        produced = assemble(config, AssemblyArchiver(registry=registry))
    except AssemblistError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not produced:
        info("No assemblies were built.")
        return

    if get_output().format == OutputFormat.JSON:
        format_data({"archives": [str(path) for path in produced], "dry_run": config.dry_run})
        return

    verb = "Would build" if config.dry_run else "Built"
    for path in produced:
        success(f"{verb} {path}")
