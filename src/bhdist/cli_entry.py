import click
import yaml
from pathlib import Path
from typing import Optional

from .config import DistanceConfig
from .config.distance_config import LOG_LEVELS
from .constants import DISTANCE_DTYPES
from .errors import MatrixWriteError
from .logging_utils import get_logger, setup_logging
from .readwrite import read_samples, write_distance_matrix
from .tools import compute_distance_matrix

logger = get_logger(__name__)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="binary-hamming-dist")
@click.option(
    "--input",
    "-i",
    "input_path",
    type=click.Path(dir_okay=False, allow_dash=True),
    default=None,
    metavar="FILE",
    help="Input file; '-' reads STDIN. Required unless set in --config.",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    metavar="FILE",
    help="Output file; if missing, result is printed to STDOUT.",
)
@click.option(
    "--threads",
    "-t",
    type=int,
    default=None,
    metavar="NUM",
    help="Number of threads; '0' will use all available CPUs.  [default: 1]",
)
@click.option(
    "--transposed",
    "-T",
    is_flag=True,
    help="Use when input file is transposed (bit strings in columns).",
)
@click.option(
    "--na-char",
    "-n",
    default=None,
    metavar="CHAR",
    help="Character marking missing values.  [default: X]",
)
@click.option(
    "--dtype",
    type=click.Choice(list(DISTANCE_DTYPES)),
    default=None,
    help="Integer type of the distances; must hold the bit string length.  [default: uint32]",
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Do NOT show the progress bar.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with default options; command-line options take precedence.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging verbosity.  [default: INFO]",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write log messages to this file.",
)
def cli(
    input_path: Optional[str],
    output_path: Optional[str],
    threads: Optional[int],
    transposed: bool,
    na_char: Optional[str],
    dtype: Optional[str],
    no_progress: bool,
    config_path: Optional[Path],
    log_level: Optional[str],
    log_file: Optional[str],
):
    """
    Calculates the pairwise distance matrix of binary strings and
    ignores missing values.

    \b
    The input file should hold one sample (i.e. bit string) per line and
    look like:

    \b
        1001X0X
        1011X01   where 'X' denotes missing values. This yields
        X10X111

    \b
        0,1,2
        1,0,3     as result.
        2,3,0

    For files with transposed data (one sample per column) use -T.
    """
    try:
        cfg = DistanceConfig.from_yaml(config_path) if config_path else DistanceConfig()
        cfg = cfg.updated(
            input_path=input_path,
            output_path=output_path,
            threads=threads,
            transposed=True if transposed else None,
            na_char=na_char,
            dtype=dtype,
            show_progress=False if no_progress else None,
            log_level=log_level,
            log_file=log_file,
        )
        cfg.validate()
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(str(e)) from e

    setup_logging(cfg.log_level, log_file=cfg.log_file)
    logger.debug("Running with %r", cfg)

    try:
        samples = read_samples(cfg.input_path, na_char=cfg.na_char, transposed=cfg.transposed)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"Error opening input file {cfg.input_path}: {e}") from e

    try:
        dists = compute_distance_matrix(
            samples,
            threads=cfg.threads,
            dtype=cfg.numpy_dtype,
            show_progress=cfg.show_progress,
            block_bytes=cfg.block_bytes,
        )
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    try:
        out = write_distance_matrix(dists, cfg.output_path)
    except MatrixWriteError as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"Error opening output file: {e}") from e

    if out is not None:
        click.echo(f"Result written to {out}")
