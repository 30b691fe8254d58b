"""Edit run orchestration.

A run loads the target package (and the donor, when transplanting), applies
every requested edit in a fixed order, checks the graph and writes it. The
order is:

1. Self-reference rename (output stem differs from input stem).
2. Import disables.
3. Import renames (a missing import is a warning, the run continues).
4. Actor removals.
5. Property edits.
6. Transplants.

Any other failure aborts the run and nothing is written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from assetgraft.codec.json_codec import JsonPackageCodec
from assetgraft.graph.edits import (
    disable_actors,
    disable_import,
    edit_property,
    parse_property_edit,
    parse_rename_argument,
    rename_import,
    rename_self_references,
    resolve_actor_selectors,
)
from assetgraft.graph.errors import AssetEditError
from assetgraft.graph.transplant import transplant_actors
from assetgraft.observability.logging import bind_package_context, get_logger
from assetgraft.pipeline.config import EditorConfig

if TYPE_CHECKING:
    from pathlib import Path

    from assetgraft.codec.base import AssetCodec
    from assetgraft.graph.asset import AssetGraph
    from assetgraft.graph.edits import (
        ActorRemoval,
        ImportOuterChange,
        ImportRename,
        PropertyChange,
    )
    from assetgraft.graph.names import NameChange
    from assetgraft.graph.transplant import TransplantResult

log = get_logger(__name__)


@dataclass
class EditRequest:
    """Everything one edit run should do.

    Attributes:
        disable_imports: Import object names to detach from their outer.
        rename_imports: ``old>new`` import rename specs.
        disable_actor_names: Object names of actors to remove from the level.
        disable_actor_indices: 1-based export indices of actors to remove.
        property_edits: ``<export>.<field>[.<nested>]=<value>`` expressions.
        donor: Donor package for transplants.
        transplant_actors: 1-based donor export indices to transplant.
    """

    disable_imports: list[str] = field(default_factory=list)
    rename_imports: list[str] = field(default_factory=list)
    disable_actor_names: list[str] = field(default_factory=list)
    disable_actor_indices: list[str] = field(default_factory=list)
    property_edits: list[str] = field(default_factory=list)
    donor: Path | None = None
    transplant_actors: list[int] = field(default_factory=list)

    def validate(self) -> None:
        """Check option combinations before any file is touched.

        Raises:
            ValueError: If transplant roots are given without a donor.
        """
        if self.transplant_actors and self.donor is None:
            raise ValueError("Actors to transplant require a donor package")


@dataclass
class EditReport:
    """What an edit run changed, in application order."""

    renamed_names: list[NameChange] = field(default_factory=list)
    disabled_imports: list[ImportOuterChange] = field(default_factory=list)
    renamed_imports: list[ImportRename] = field(default_factory=list)
    removed_actors: list[ActorRemoval] = field(default_factory=list)
    property_changes: list[PropertyChange] = field(default_factory=list)
    transplants: list[TransplantResult] = field(default_factory=list)
    warnings: list[AssetEditError] = field(default_factory=list)

    @property
    def change_count(self) -> int:
        return (
            len(self.renamed_names)
            + len(self.disabled_imports)
            + len(self.renamed_imports)
            + len(self.removed_actors)
            + len(self.property_changes)
            + sum(len(t.exports) + len(t.imports) for t in self.transplants)
        )


def apply_edits(
    graph: AssetGraph,
    request: EditRequest,
    *,
    donor: AssetGraph | None = None,
    config: EditorConfig | None = None,
    input_stem: str = "",
    output_stem: str = "",
) -> EditReport:
    """Apply an edit request to ``graph`` in place.

    Expressions are parsed up front, so a malformed one fails the run before
    the graph is touched.

    Args:
        graph: Target graph (mutated).
        request: The edits to apply.
        donor: Donor graph, required when the request transplants actors.
        config: Editor settings (defaults when omitted).
        input_stem: File stem the target was loaded from.
        output_stem: File stem the target will be written to.

    Returns:
        Report of every change and every recoverable warning.

    Raises:
        AssetEditError: On the first non-recoverable failure.
        ValueError: If the request transplants actors without a donor.
    """
    config = config or EditorConfig()
    if request.transplant_actors and donor is None:
        raise ValueError("Actors to transplant require a donor graph")

    renames = [parse_rename_argument(arg) for arg in request.rename_imports]
    edits = [parse_property_edit(expr) for expr in request.property_edits]

    report = EditReport()

    if config.rename_self_references and input_stem and output_stem:
        report.renamed_names = rename_self_references(graph, input_stem, output_stem)

    for name in request.disable_imports:
        report.disabled_imports.extend(disable_import(graph, name))

    for old, new in renames:
        try:
            report.renamed_imports.append(rename_import(graph, old, new))
        except AssetEditError as e:
            if not e.recoverable:
                raise
            log.warning("edit_skipped", error=str(e))
            report.warnings.append(e)

    if request.disable_actor_names or request.disable_actor_indices:
        report.removed_actors = disable_actors(
            graph,
            names=request.disable_actor_names,
            indices=request.disable_actor_indices,
            level_root_name=config.level_root_name,
        )

    for edit in edits:
        report.property_changes.append(edit_property(graph, edit))

    if request.transplant_actors and donor is not None:
        roots = resolve_actor_selectors(donor, indices=request.transplant_actors)
        report.transplants = transplant_actors(
            graph, donor, roots, level_root_name=config.level_root_name
        )

    return report


def run_edit(
    input_path: Path,
    output_path: Path,
    request: EditRequest,
    *,
    config: EditorConfig | None = None,
    codec: AssetCodec | None = None,
) -> EditReport:
    """Load, edit and write a package.

    The output is written only after every edit succeeded and the graph
    passed validation.

    Args:
        input_path: Target package to read.
        output_path: Where to write the edited package.
        request: The edits to apply.
        config: Editor settings (defaults when omitted).
        codec: Package codec (JSON codec when omitted).

    Returns:
        Report of the applied changes.

    Raises:
        AssetEditError: If loading, editing or writing fails.
        ValueError: If the request is inconsistent.
    """
    config = config or EditorConfig()
    codec = codec or JsonPackageCodec(config.payload_extension)
    request.validate()
    bind_package_context(input=str(input_path), output=str(output_path))

    graph = codec.load(input_path)
    if not graph.engine_version:
        graph.engine_version = config.engine_version
    elif graph.engine_version != config.engine_version:
        log.warning(
            "engine_version_mismatch",
            package=graph.engine_version,
            configured=config.engine_version,
        )

    donor = None
    if request.donor is not None:
        donor = codec.load(request.donor)
        log.debug("donor_loaded", path=str(request.donor), exports=len(donor.exports))

    report = apply_edits(
        graph,
        request,
        donor=donor,
        config=config,
        input_stem=input_path.stem,
        output_stem=output_path.stem,
    )
    codec.save(graph, output_path)
    log.info(
        "package_written",
        path=str(output_path),
        changes=report.change_count,
        warnings=len(report.warnings),
    )
    return report
