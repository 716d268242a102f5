"""Read-time resolution of concrete and virtual experiments.

Virtual experiments are resolved recursively: the source is materialized
completely first, aggregates are computed over the resolved points, and
then the expressions are applied. Nothing derived is ever persisted.
"""

from __future__ import annotations

from typing import Sequence

from core.constants import (
    DEFAULT_LINEAR_TO_X_EXPRESSION,
    DEFAULT_LINEAR_TO_Y_EXPRESSION,
    DEFAULT_TAG_EXPRESSION,
    DEFAULT_V_EXPRESSION,
    DEFAULT_X_EXPRESSION,
    DEFAULT_Y_EXPRESSION,
)
from core.errors import BencherConfigError, BencherNotFoundError, BencherTypeMismatchError
from core.logging_config import get_logger
from core.selector import ALL, Selector
from core.types import (
    ExperimentCatalog,
    ExperimentDescriptor,
    LinearDatapoint,
    LinearExperiment,
    LinearExperimentSet,
    VirtualLinearExperiment,
    VirtualXYExperiment,
    XYExperiment,
    XYExperimentLine,
)
from store.federation import StoreFederation
from virtual.evaluator import Evaluator, SimpleEvaluator
from virtual.transforms import (
    Aggregates,
    LinearMapping,
    XYMapping,
    map_linear,
    map_linear_to_xy,
    map_xy,
)

_LOGGER = get_logger(__name__)

_LINEAR_KINDS = (LinearExperiment, VirtualLinearExperiment)
_XY_KINDS = (XYExperiment, VirtualXYExperiment)


class VirtualEngine:
    """Resolve experiment types into sets or lines of current points."""

    def __init__(
        self,
        catalog: ExperimentCatalog,
        federation: StoreFederation,
        evaluator: Evaluator | None = None,
    ) -> None:
        """Create an engine.

        Args:
            catalog: Descriptors experiment types are resolved against.
            federation: Stores holding the concrete points.
            evaluator: Expression evaluator; simpleeval-backed when omitted.
        """
        self._catalog = catalog
        self._federation = federation
        self._evaluator = evaluator or SimpleEvaluator()

    def linear_sets(
        self,
        exp_type: str,
        selector: Selector = ALL,
    ) -> tuple[LinearExperimentSet, ...]:
        """Resolve a concrete or virtual linear experiment type.

        Args:
            exp_type: Linear experiment type.
            selector: Filter applied to the concrete codes read.

        Returns:
            Sets in store then code order.

        Raises:
            BencherNotFoundError: If the type is not configured.
            BencherTypeMismatchError: If the type, or a source of it, is xy.
            BencherConfigError: If virtual sources form a cycle.
            BencherExpressionError: If an expression fails.
        """
        return self._resolve_linear(exp_type, selector, ())

    def xy_lines(
        self,
        exp_type: str,
        selector: Selector = ALL,
    ) -> tuple[XYExperimentLine, ...]:
        """Resolve a concrete or virtual xy experiment type.

        A virtual xy type over a linear source yields one line per group.
        """
        return self._resolve_xy(exp_type, selector, ())

    def _descriptor(self, exp_type: str, chain: tuple[str, ...]) -> ExperimentDescriptor:
        if exp_type in chain:
            cycle = " -> ".join((*chain, exp_type))
            raise BencherConfigError(
                f"Virtual experiment cycle detected: {cycle}. "
                "Point source_exp_type at an experiment outside the cycle."
            )
        descriptor = self._catalog.find(exp_type)
        if descriptor is None:
            known = ", ".join(self._catalog.exp_types()) or "none"
            raise BencherNotFoundError(
                f"Experiment type '{exp_type}' is not configured. Known types: {known}."
            )
        return descriptor

    def _resolve_linear(
        self,
        exp_type: str,
        selector: Selector,
        chain: tuple[str, ...],
    ) -> tuple[LinearExperimentSet, ...]:
        descriptor = self._descriptor(exp_type, chain)
        if isinstance(descriptor, LinearExperiment):
            return self._concrete_sets(exp_type, selector)
        if not isinstance(descriptor, VirtualLinearExperiment):
            raise BencherTypeMismatchError(
                f"Experiment type '{exp_type}' is an xy experiment, expected a linear one."
            )
        source = self._descriptor(descriptor.source_exp_type, (*chain, exp_type))
        if not isinstance(source, _LINEAR_KINDS):
            raise BencherTypeMismatchError(
                f"Virtual linear experiment '{exp_type}' cannot derive from xy experiment "
                f"'{descriptor.source_exp_type}'. Use a virtual xy experiment instead."
            )
        source_sets = self._resolve_linear(
            descriptor.source_exp_type, selector, (*chain, exp_type)
        )
        mapping = LinearMapping(
            v_expression=descriptor.v_operation or DEFAULT_V_EXPRESSION,
            tag_expression=descriptor.tag_operation or DEFAULT_TAG_EXPRESSION,
        )
        aggregates = Aggregates.of([point.v for item in source_sets for point in item.values])
        sets = tuple(
            LinearExperimentSet(
                set_label=item.set_label,
                values=tuple(
                    map_linear(point, mapping, aggregates, self._evaluator)
                    for point in item.values
                ),
            )
            for item in source_sets
        )
        _LOGGER.debug(
            "virtual_experiment_resolved",
            exp_type=exp_type,
            source_exp_type=descriptor.source_exp_type,
            set_count=len(sets),
        )
        return sets

    def _resolve_xy(
        self,
        exp_type: str,
        selector: Selector,
        chain: tuple[str, ...],
    ) -> tuple[XYExperimentLine, ...]:
        descriptor = self._descriptor(exp_type, chain)
        if isinstance(descriptor, XYExperiment):
            return self._concrete_lines(exp_type, selector)
        if not isinstance(descriptor, VirtualXYExperiment):
            raise BencherTypeMismatchError(
                f"Experiment type '{exp_type}' is a linear experiment, expected an xy one."
            )
        next_chain = (*chain, exp_type)
        source = self._descriptor(descriptor.source_exp_type, next_chain)
        if isinstance(source, _LINEAR_KINDS):
            lines = self._lines_from_linear(descriptor, selector, next_chain)
        else:
            lines = self._lines_from_xy(descriptor, selector, next_chain)
        _LOGGER.debug(
            "virtual_experiment_resolved",
            exp_type=exp_type,
            source_exp_type=descriptor.source_exp_type,
            line_count=len(lines),
        )
        return lines

    def _lines_from_xy(
        self,
        descriptor: VirtualXYExperiment,
        selector: Selector,
        chain: tuple[str, ...],
    ) -> tuple[XYExperimentLine, ...]:
        source_lines = self._resolve_xy(descriptor.source_exp_type, selector, chain)
        mapping = XYMapping(
            x_expression=descriptor.x_operation or DEFAULT_X_EXPRESSION,
            y_expression=descriptor.y_operation or DEFAULT_Y_EXPRESSION,
            tag_expression=descriptor.tag_operation or DEFAULT_TAG_EXPRESSION,
        )
        points = [point for line in source_lines for point in line.values]
        x_aggregates = Aggregates.of([point.x for point in points])
        y_aggregates = Aggregates.of([point.y for point in points])
        return tuple(
            XYExperimentLine(
                line_label=line.line_label,
                values=tuple(
                    map_xy(point, mapping, x_aggregates, y_aggregates, self._evaluator)
                    for point in line.values
                ),
            )
            for line in source_lines
        )

    def _lines_from_linear(
        self,
        descriptor: VirtualXYExperiment,
        selector: Selector,
        chain: tuple[str, ...],
    ) -> tuple[XYExperimentLine, ...]:
        source_sets = self._resolve_linear(descriptor.source_exp_type, selector, chain)
        mapping = XYMapping(
            x_expression=descriptor.x_operation or DEFAULT_LINEAR_TO_X_EXPRESSION,
            y_expression=descriptor.y_operation or DEFAULT_LINEAR_TO_Y_EXPRESSION,
            tag_expression=descriptor.tag_operation or DEFAULT_TAG_EXPRESSION,
        )
        groups = _group_points(source_sets)
        aggregates = Aggregates.of([point.v for points in groups.values() for point in points])
        return tuple(
            XYExperimentLine(
                line_label=group,
                values=tuple(
                    map_linear_to_xy(point, mapping, aggregates, self._evaluator)
                    for point in groups[group]
                ),
            )
            for group in sorted(groups)
        )

    def _concrete_sets(self, exp_type: str, selector: Selector) -> tuple[LinearExperimentSet, ...]:
        codes_labels = self._federation.list_codes_labels_by_type(exp_type, selector)
        return tuple(
            LinearExperimentSet(
                set_label=label,
                values=tuple(
                    point.with_tag(index) for point in self._federation.current_linear(code)
                ),
            )
            for index, (code, label) in enumerate(codes_labels)
        )

    def _concrete_lines(self, exp_type: str, selector: Selector) -> tuple[XYExperimentLine, ...]:
        codes_labels = self._federation.list_codes_labels_by_type(exp_type, selector)
        return tuple(
            XYExperimentLine(line_label=label, values=self._federation.current_xy(code))
            for code, label in codes_labels
        )


def _group_points(sets: Sequence[LinearExperimentSet]) -> dict[str, list[LinearDatapoint]]:
    groups: dict[str, list[LinearDatapoint]] = {}
    for item in sets:
        for point in item.values:
            groups.setdefault(point.group, []).append(point)
    return groups
