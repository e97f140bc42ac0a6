import argparse
import logging
from typing import Optional

logger = logging.getLogger(__name__)


SUPPORTED_FORMATS = ["json", "yaml"]
COMMANDS = ["bivariate", "two-samples"]
TWO_SAMPLE_TESTS = ["mann-whitney", "kolmogorov-smirnov", "moses", "wald-wolfowitz"]


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("data_file", type=str, help="CSV file holding the dataset")
    parser.add_argument(
        "--vars",
        nargs="+",
        required=True,
        metavar="VARIABLE",
        help="Variables to analyze.",
    )
    parser.add_argument("-o", "--output", type=str, default=None, help="Export the stored results to this file.")
    parser.add_argument(
        "-f",
        "--format",
        choices=SUPPORTED_FORMATS,
        default=None,
        help="Export format (default from configuration).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the result tables.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the calculation worker (default from configuration).",
    )


def _add_bivariate_parser(subparsers) -> None:
    parser = subparsers.add_parser("bivariate", help="Bivariate correlations")
    _add_common_arguments(parser)
    parser.add_argument("--control", nargs="*", default=None, metavar="VARIABLE", help="Control variables.")
    parser.add_argument("--pearson", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--kendall", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--spearman", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument(
        "--one-tailed",
        action="store_true",
        default=None,
        help="Use one-tailed significance tests.",
    )
    parser.add_argument(
        "--flag-significant",
        action="store_true",
        default=None,
        help="Flag significant correlations with asterisks.",
    )
    parser.add_argument("--lower-triangle", action="store_true", default=None, help="Show only the lower triangle.")
    parser.add_argument("--hide-diagonal", action="store_true", default=None, help="Hide the diagonal.")
    parser.add_argument(
        "--partial",
        action="store_true",
        default=None,
        help="Compute Kendall's tau-b partial correlations (requires --listwise).",
    )
    parser.add_argument(
        "--means",
        action="store_true",
        default=None,
        help="Include means and standard deviations.",
    )
    parser.add_argument(
        "--cross-products",
        action="store_true",
        default=None,
        help="Include cross-product deviations and covariances.",
    )
    missing = parser.add_mutually_exclusive_group()
    missing.add_argument("--pairwise", action="store_true", default=None, help="Exclude cases pairwise.")
    missing.add_argument("--listwise", action="store_true", default=None, help="Exclude cases listwise.")
    parser.add_argument(
        "--allow-unknown",
        action="store_true",
        help="Accept variables whose measurement level is unknown.",
    )


def _add_two_samples_parser(subparsers) -> None:
    parser = subparsers.add_parser("two-samples", help="Two-independent-samples tests")
    _add_common_arguments(parser)
    parser.add_argument("--group", required=True, metavar="VARIABLE", help="Grouping variable.")
    parser.add_argument(
        "--groups",
        nargs=2,
        required=True,
        metavar=("GROUP1", "GROUP2"),
        help="Values of the grouping variable that define the two groups.",
    )
    parser.add_argument(
        "--tests",
        nargs="+",
        choices=TWO_SAMPLE_TESTS,
        default=None,
        help="Tests to run (default from configuration).",
    )
    parser.add_argument("--descriptive", action="store_true", default=None, help="Display descriptive statistics.")
    parser.add_argument("--quartiles", action="store_true", default=None, help="Display quartiles.")


def parse_arguments(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(
        prog="statdialogs",
        description="Runs bivariate correlations or two-independent-samples tests on a CSV dataset.",
        epilog=(
            "Examples:\n"
            "  statdialogs bivariate data.csv --vars height weight age\n"
            "  statdialogs bivariate data.csv --vars a b c --kendall --partial --listwise --control c\n"
            "  statdialogs two-samples data.csv --vars score --group sex --groups 1 2\n"
            "  statdialogs two-samples data.csv --vars score --group sex --groups 1 2 --tests moses -o out.yaml\n"
            "  statdialogs --config-validate\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Configuration controls
    parser.add_argument("--config", type=str, default=None, help="Path to the configuration file")
    parser.add_argument(
        "--profile",
        type=str,
        default=None,
        help="Name of the configuration profile to use (default profile when omitted)",
    )
    parser.add_argument(
        "--config-validate",
        action="store_true",
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enables verbose logging.",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Path to the log file.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="{" + ",".join(COMMANDS) + "}")
    _add_bivariate_parser(subparsers)
    _add_two_samples_parser(subparsers)

    args = parser.parse_args(argv)

    if not args.config_validate and args.command is None:
        parser.error("a command is required unless running a configuration command.")

    return args
