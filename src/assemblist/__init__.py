"""assemblist -- Build distributable archives from declarative assembly descriptors.

An *assembly descriptor* lists the content of one distribution: dependency
sets, file sets, single files, and embedded repositories. assemblist reads
the descriptors, interpolates ``${...}`` expressions against the project
metadata, merges referenced components, and writes one archive per
requested format (zip, jar, war, tar with optional compression, or an
exploded directory).

Typical workflow::

    assemblist single                      # build every configured assembly
    assemblist inspect entries dist.xml    # list what would be archived
    assemblist inspect descriptors         # show built-in descriptor refs

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and project config resolution.
    assembler: Orchestration of descriptor reading and archive creation.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
