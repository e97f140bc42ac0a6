import logging
import signal
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from colorama import init as colorama_init

from statdialogs.backend.output.rendering import render_statistics
from statdialogs.backend.output.writers import ExportError
from statdialogs.backend.results.store import InMemoryResultStore
from statdialogs.backend.services.logging.logging_service import setup_logging
from statdialogs.cli.parser import SUPPORTED_FORMATS, parse_arguments
from statdialogs.config import ConfigError, ConfigValidationError
from statdialogs.config.unified import UnifiedConfigManager
from statdialogs.core.dataset import Dataset
from statdialogs.core.exceptions import ConfigurationError
from statdialogs.core.variables import Variable, VariableType
from statdialogs.dialogs.base import AnalysisState, WorkerFactory
from statdialogs.dialogs.bivariate.dialog import BivariateDialog
from statdialogs.dialogs.bivariate.settings import LISTWISE, PAIRWISE, BivariateSettings
from statdialogs.dialogs.two_independent_samples.dialog import TwoIndependentSamplesDialog
from statdialogs.dialogs.two_independent_samples.settings import TwoIndependentSamplesSettings
from statdialogs.dialogs.workers import qt_worker_factory
from statdialogs.utils.color_support import color_support

Dialog = Union[BivariateDialog, TwoIndependentSamplesDialog]

# cli test name -> settings flag
TEST_FLAGS = {
    "mann-whitney": "mann_whitney_u",
    "kolmogorov-smirnov": "kolmogorov_smirnov_z",
    "moses": "moses_extreme_reactions",
    "wald-wolfowitz": "wald_wolfowitz_runs",
}

_active_dialog: Optional[Dialog] = None


def signal_handler(sig, frame):
    dialog = _active_dialog
    if dialog is None or not dialog.is_calculating:
        logging.warning("Programme interrupted but no calculation is active.")
        sys.exit(1)
    logging.warning("Programme interrupted by user (CTRL+C). Cancelling calculation.")
    dialog.cancel()


def coerce_group_value(raw: str, variable: Variable, column: Sequence[Any]) -> Any:
    """Convert a command line group value to the grouping column's value type."""

    numeric_column = variable.type == VariableType.NUMERIC or any(
        isinstance(value, (int, float)) and not isinstance(value, bool) for value in column
    )
    if not numeric_column:
        return raw
    try:
        number = float(raw)
    except ValueError:
        return raw
    return int(number) if number.is_integer() else number


def _resolve_variables(dataset: Dataset, names: Sequence[str]) -> List[Variable]:
    variables = []
    for name in names:
        try:
            variables.append(dataset.variable(name))
        except KeyError:
            available = ", ".join(v.name for v in dataset.variables)
            raise ConfigurationError(f"Unknown variable '{name}'. Available variables: {available}") from None
    return variables


def _bivariate_settings(args, section) -> BivariateSettings:
    settings = BivariateSettings.from_config(section)
    coefficients = settings.correlation_coefficient
    if args.pearson is not None:
        coefficients.pearson = args.pearson
    if args.kendall is not None:
        coefficients.kendalls_tau_b = args.kendall
    if args.spearman is not None:
        coefficients.spearman = args.spearman
    if args.one_tailed:
        settings.set_one_tailed()
    if args.flag_significant:
        settings.flag_significant_correlations = True
    if args.lower_triangle:
        settings.show_only_the_lower_triangle = True
    if args.hide_diagonal:
        settings.show_diagonal = False
    if args.partial:
        settings.partial_correlation_kendalls_tau_b = True
    if args.means:
        settings.statistics_options.means_and_standard_deviations = True
    if args.cross_products:
        settings.statistics_options.cross_product_deviations_and_covariances = True
    if args.listwise:
        settings.set_missing_values(LISTWISE)
    elif args.pairwise:
        settings.set_missing_values(PAIRWISE)
    return settings


def build_bivariate_dialog(
    args, dataset: Dataset, store: InMemoryResultStore, worker_factory: WorkerFactory
) -> BivariateDialog:
    config_manager = UnifiedConfigManager()
    dialog = BivariateDialog(
        dataset.variables,
        dataset,
        store,
        worker_factory=worker_factory,
        settings=_bivariate_settings(args, config_manager.get_section("bivariate")),
        allow_unknown=args.allow_unknown,
    )
    for variable in _resolve_variables(dataset, args.vars):
        if not dialog.partition.move_to_test(variable):
            logging.warning("Skipping '%s': only scale and ordinal variables can be correlated.", variable.name)
    for variable in _resolve_variables(dataset, args.control or []):
        if not dialog.partition.move_to_control(variable):
            logging.warning("Skipping control variable '%s'.", variable.name)

    if not dialog.is_ok_enabled:
        raise ConfigurationError(
            "Bivariate correlations need at least two variables, one coefficient, "
            "and control variables when partial correlations run listwise."
        )
    return dialog


def build_two_samples_dialog(
    args, dataset: Dataset, store: InMemoryResultStore, worker_factory: WorkerFactory
) -> TwoIndependentSamplesDialog:
    config_manager = UnifiedConfigManager()
    settings = TwoIndependentSamplesSettings.from_config(config_manager.get_section("two_independent_samples"))
    if args.tests:
        for flag in TEST_FLAGS.values():
            setattr(settings.test_type, flag, False)
        for name in args.tests:
            setattr(settings.test_type, TEST_FLAGS[name], True)
    if args.descriptive:
        settings.display_statistics.descriptive = True
    if args.quartiles:
        settings.display_statistics.quartiles = True

    worker_config = config_manager.get_section("worker")
    dialog = TwoIndependentSamplesDialog(
        dataset.variables,
        dataset,
        store,
        worker_factory=worker_factory,
        settings=settings,
        worker_options={
            "exactMaxProduct": worker_config.get("exact_max_product", 400),
            "exactMaxThreshold": worker_config.get("exact_max_threshold", 220),
        },
    )
    for variable in _resolve_variables(dataset, args.vars):
        dialog.partition.move_to_test(variable)
    grouping = _resolve_variables(dataset, [args.group])[0]
    dialog.partition.move_to_grouping(grouping)

    column = dataset.column(grouping)
    settings.define_groups(*(coerce_group_value(raw, grouping, column) for raw in args.groups))
    return dialog


def run_dialog(dialog: Dialog, timeout_seconds: float) -> None:
    """Run the dialog's calculation and spin a Qt core event loop until it finishes."""

    global _active_dialog
    from PyQt6.QtCore import QCoreApplication, QTimer

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    dialog.analysis.on_finished = app.quit

    def on_timeout() -> None:
        if dialog.is_calculating:
            logging.error("Calculation did not finish within %s seconds; cancelling.", timeout_seconds)
            dialog.cancel()

    _active_dialog = dialog
    try:
        dialog.run()
        if not dialog.is_calculating:
            return

        watchdog = QTimer()
        watchdog.setSingleShot(True)
        watchdog.timeout.connect(on_timeout)
        watchdog.start(int(timeout_seconds * 1000))

        # Wakes the interpreter so SIGINT is handled while Qt owns the loop
        heartbeat = QTimer()
        heartbeat.timeout.connect(lambda: None)
        heartbeat.start(200)

        app.exec()
        watchdog.stop()
        heartbeat.stop()
    finally:
        _active_dialog = None
        dialog.analysis.on_finished = None


def run(argv: Optional[list[str]] = None, worker_factory: WorkerFactory = qt_worker_factory) -> int:
    colorama_init(autoreset=True)
    args = parse_arguments(argv)

    signal.signal(signal.SIGINT, signal_handler)

    setup_logging(args.verbose, args.log_file)

    config_manager = UnifiedConfigManager()

    # Load configuration and profiles
    config_path = Path(args.config).expanduser() if args.config else None
    try:
        config_manager.reload(config_path, profile=args.profile)
    except ConfigError as exc:
        logging.error("Failed to load configuration: %s", exc)
        return 1

    try:
        if args.config_validate:
            try:
                config_manager.validate_current()
            except ConfigValidationError as exc:
                logging.error("Configuration validation failed: %s", exc)
                print(color_support.error("Configuration validation failed."))
                return 1
            print(color_support.success("Configuration is valid."))
            return 0

        logging_config = config_manager.get_section("logging")
        if not args.verbose and not args.log_file and (logging_config.get("verbose") or logging_config.get("file")):
            setup_logging(bool(logging_config.get("verbose")), logging_config.get("file") or None)

        output_config = config_manager.get_section("output")
        worker_config = config_manager.get_section("worker")
        output_format = args.format or output_config.get("format", "json")
        if output_format not in SUPPORTED_FORMATS:
            logging.error("Unsupported output format requested: %s", output_format)
            return 2
        output_file = args.output or output_config.get("path") or None
        timeout_seconds = args.timeout or float(worker_config.get("timeout_seconds", 300))

        logging.info("Active configuration profile: %s", config_manager.active_profile)
        logging.info("Dataset: %s", args.data_file)

        try:
            dataset = Dataset.from_csv(Path(args.data_file).expanduser())
        except (OSError, ValueError) as exc:
            logging.error("Failed to load dataset '%s': %s", args.data_file, exc)
            return 1

        store = InMemoryResultStore()
        try:
            if args.command == "bivariate":
                dialog: Dialog = build_bivariate_dialog(args, dataset, store, worker_factory)
            else:
                dialog = build_two_samples_dialog(args, dataset, store, worker_factory)
        except ConfigurationError as exc:
            logging.error("%s", exc)
            return 2

        run_dialog(dialog, timeout_seconds)

        if dialog.error_msg:
            for line in dialog.error_msg.splitlines():
                logging.error(line)

        statistics = [asdict(record) for record in store.statistics()]
        if statistics and not args.quiet:
            render_statistics(statistics)

        if output_file and store.logs:
            try:
                store.export(Path(output_file), output_format, bool(output_config.get("pretty_print", True)))
            except (ExportError, OSError, ValueError) as exc:
                logging.error("Failed to export results: %s", exc)
                return 1
            print(color_support.success(f"Results exported to {output_file}"))

        if dialog.state == AnalysisState.COMPLETED:
            return 0
        if dialog.state == AnalysisState.IDLE:
            logging.warning("Calculation cancelled.")
        return 1
    finally:
        config_manager.cleanup()
