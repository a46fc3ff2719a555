"""
Giro account statement analysis.

Reads all CAMT-V2 statement exports of one account, builds the de-duplicated
base record set of the requested year and sign, and reports the transactions
of the selected category presets:

    raw files -> parser -> aggregator -> base record set
              -> { matcher + report builder } per category
              -> threshold ranker

Every category is emitted as CSV, fixed-width table and PDF below
``<GIRODIR>/outdir`` unless display-only mode (``-n``) is selected.
"""

import argparse
import logging
import pathlib
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .aggregate import aggregate_files, write_base_file
from .categories import COMPLETE_SEQUENCE, PresetKind, resolve_preset, usage_lines
from .config import load_settings
from .errors import UmsatzError
from .printer import check_tools, render_document
from .ranker import rank_by_amount, render_ranked_table
from .records import SignFilter, year_suffix
from .reports import (
    build_report,
    compose_header,
    compose_title,
    emit_report,
    list_created_files,
    publish,
    purge_artifacts,
)
from .sources import find_source_files, normalize_source_file
from .utils import attach_log_file, ensure_directory, sanitize_prefix, setup_logging

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    SUCCESS = 'success'
    EMPTY = 'empty'
    FATAL = 'fatal'


@dataclass(frozen=True)
class Request:
    """One analysis request, as given on the command line."""
    year: str
    type_arg: str
    account: str
    sign: SignFilter = SignFilter.ALL
    prefix: str = ''
    pdf_header: str = ''
    limit: Optional[int] = None
    emit_files: bool = True


@dataclass
class CategoryOutcome:
    title: str
    status: RunStatus
    count: int = 0
    total: Optional[float] = None
    files: list = field(default_factory=list)
    message: str = ''


@dataclass
class RunResult:
    """Result of one request; composite requests carry their sub-runs."""
    type_arg: str
    status: RunStatus
    categories: List[CategoryOutcome] = field(default_factory=list)
    subruns: List['RunResult'] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def exit_code(self):
        return 1 if self.status is RunStatus.FATAL else 0


def overall_status(statuses):
    """Fatal if any part is fatal, empty if all parts are empty."""
    statuses = list(statuses)
    if RunStatus.FATAL in statuses:
        return RunStatus.FATAL
    if statuses and all(status is RunStatus.EMPTY for status in statuses):
        return RunStatus.EMPTY
    return RunStatus.SUCCESS


def generate_base(settings, request, sign):
    """Aggregate the statement files of the requested account and year.

    In emit-files mode the source files are normalized to UTF-8 first and the
    base set is persisted to the work directory. A failed aggregation leaves
    no base file behind.

    Raises:
        UmsatzError: If sources are missing, a row is malformed or no record
            qualifies
    """
    files = find_source_files(settings.giro_dir, request.account)
    if request.emit_files:
        for path in files:
            normalize_source_file(path)

    base_path = settings.base_file(request.account)
    try:
        base = aggregate_files(files, year_suffix(request.year), sign, settings.separator)
    except UmsatzError:
        if request.emit_files and base_path.exists():
            base_path.unlink()
        raise

    if request.emit_files:
        write_base_file(base, base_path)
        logger.debug(f"Base record set written to {base_path}")
    logger.info(f"oldest detected dataset: {base[0].fingerprint}")
    logger.info(f"newest detected dataset: {base[-1].fingerprint}")
    return base


def run_category(base, spec, prefix, request, settings, sign, renderer, stream):
    """Match, total and emit one category. Errors stay local to the category."""
    title = compose_title(prefix + spec.title, request.year, sign)
    header = compose_header(title, spec.header, request.pdf_header)
    try:
        result = build_report(base, spec)
        files = emit_report(result, title, header, request.year, settings.out_dir,
                            renderer, request.emit_files, stream)
    except (UmsatzError, OSError) as e:
        logger.error(f"error in report '{title}': {e}".replace('\n', ' | '))
        return CategoryOutcome(title, RunStatus.FATAL, message=str(e))

    if result.empty:
        message = f"no '{sign.value}' records found for title '{title}'"
        logger.info(message)
        return CategoryOutcome(title, RunStatus.EMPTY, message=message)
    return CategoryOutcome(title, RunStatus.SUCCESS, result.count, result.total, files)


def run_ranker(base, prefix, request, settings, sign, renderer, stream):
    """Emit the records beyond the configured limit, sorted by amount."""
    title = compose_title(prefix, request.year, sign)
    header = compose_header(title, None, request.pdf_header)
    limit = request.limit if request.limit is not None else settings.limit
    try:
        records = rank_by_amount(base, limit)
        if request.emit_files:
            purge_artifacts(settings.out_dir, title)
        if not records:
            message = f"no records found beyond limit {limit}, type '{request.type_arg}'"
            logger.info(message)
            return CategoryOutcome(title, RunStatus.EMPTY, message=message)
        table = render_ranked_table(records)
        files = []
        if request.emit_files:
            files = publish(settings.out_dir, title, {'table': table}, header, request.year, renderer, stream)
        else:
            stream.write("\n\n" + table)
    except (UmsatzError, OSError) as e:
        diagnostic = e.diagnostic() if isinstance(e, UmsatzError) else f"error in ranker: {e}"
        logger.error(diagnostic)
        return CategoryOutcome(title, RunStatus.FATAL, message=str(e))
    return CategoryOutcome(title, RunStatus.SUCCESS, len(records), None, files)


def run_composite(request, settings, renderer=None, stream=None, type_args=COMPLETE_SEQUENCE):
    """Run one independent request per type and collect the results.

    Sub-runs get year, account, sign, limit and mode of the composite
    request, but neither file prefix nor document header.
    """
    stream = stream or sys.stdout
    subruns = []
    for type_arg in type_args:
        stream.write(f"\n********** calculating {type_arg} **********\n")
        sub_request = Request(
            year=request.year,
            type_arg=type_arg,
            account=request.account,
            sign=request.sign,
            limit=request.limit,
            emit_files=request.emit_files,
        )
        subruns.append(run_request(sub_request, settings, renderer, stream))

    status = RunStatus.FATAL if any(r.status is RunStatus.FATAL for r in subruns) else RunStatus.SUCCESS
    return RunResult(request.type_arg, status, subruns=subruns)


def run_request(request, settings, renderer=None, stream=None):
    """Run a single request to completion.

    Args:
        request (Request): What to analyse
        settings (Settings): Resolved configuration
        renderer (callable, optional): Document renderer, defaults to
            ``render_document``
        stream (file, optional): Where tables are written, default stdout

    Returns:
        RunResult: Outcome of every category; fatal aggregation errors are
        reported in ``error``
    """
    stream = stream or sys.stdout
    if renderer is None:
        renderer = render_document

    try:
        preset, specs = resolve_preset(request.type_arg)
    except UmsatzError as e:
        logger.error(e.diagnostic())
        return RunResult(request.type_arg, RunStatus.FATAL, error=str(e))

    if preset.kind is PresetKind.COMPOSITE:
        return run_composite(request, settings, renderer, stream)

    sign = preset.forced_sign or request.sign
    prefix = sanitize_prefix(request.prefix) or preset.prefix

    try:
        # the ranker scans the base set independent of the sign filter
        base_sign = SignFilter.ALL if preset.kind is PresetKind.RANKER else sign
        base = generate_base(settings, request, base_sign)
        # output dir, work dir and log file appear only once the base set exists
        if request.emit_files:
            ensure_directory(settings.giro_dir, 'outdir')
            ensure_directory(settings.giro_dir, 'workdir')
            attach_log_file(settings.log_file)
    except UmsatzError as e:
        logger.error(e.diagnostic())
        return RunResult(request.type_arg, RunStatus.FATAL, error=str(e))
    except OSError as e:
        logger.error(f"error in aggregate: {e}")
        return RunResult(request.type_arg, RunStatus.FATAL, error=str(e))

    if preset.kind is PresetKind.RANKER:
        outcomes = [run_ranker(base, prefix, request, settings, sign, renderer, stream)]
    else:
        outcomes = [run_category(base, spec, prefix, request, settings, sign, renderer, stream)
                    for spec in specs]

    if request.emit_files:
        list_created_files(settings.out_dir, prefix, request.year, sign)
        if settings.g_und_v and pathlib.Path(settings.g_und_v).expanduser().exists():
            logger.info(f"the CSV files may be loaded into {settings.g_und_v}")

    return RunResult(request.type_arg, overall_status(o.status for o in outcomes), outcomes)


def build_parser():
    epilog = '\n'.join([
        'types (may be shortened, e.g. "moos" or "versich"):',
        *(f"  {line}" for line in usage_lines()),
        '',
        'examples:',
        '  umsatz-giro -y 2023 -t moosach',
        '  umsatz-giro -y 2022 -t steuer -s positiv',
        '  umsatz-giro -y 2021 -t "search:landeskrankenhilfe" -s negativ -p "LKH Krankenkasse in 2021"',
        '  umsatz-giro -y 2020 -t total -s positiv -p "alle Einnahmen in 2020"',
        '',
        'the CSV files in <GIRODIR>/outdir may be loaded into the workbook configured as G_UND_V',
    ])
    parser = argparse.ArgumentParser(
        prog='umsatz-giro',
        description='Analyse giro account statements (CAMT-V2 CSV exports) by category',
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-y', '--year', required=True,
                        help='Year to analyse, e.g. 2023')
    parser.add_argument('-t', '--type', required=True, dest='type_arg',
                        help='Category preset, "search:<regex>", "large" or "complete"')
    parser.add_argument('-k', '--konto', default=None,
                        help='Giro account number (default DEF_KONTO from the configuration)')
    parser.add_argument('-p', '--pdf-header', default='',
                        help='Header text of the PDF, max. 80 chars')
    parser.add_argument('-f', '--prefix', default='',
                        help='Leading part of the output file names')
    parser.add_argument('-s', '--sign', default='all',
                        help='positiv|negativ|all: which amounts to accumulate')
    parser.add_argument('-l', '--limit', type=int, default=None,
                        help='Threshold for type "large" (negative selects debits)')
    parser.add_argument('-n', '--no-files', action='store_true',
                        help='Display only, write no files')
    parser.add_argument('--config', default=None,
                        help='Configuration file (default ~/.config/umsatz-giro.cfg)')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv=None):
    """Command line entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        settings = load_settings(args.config)
        year_suffix(args.year)
        sign = SignFilter.parse(args.sign)
        resolve_preset(args.type_arg)
        account = settings.resolve_account(args.konto)
        emit_files = not args.no_files
        if emit_files:
            check_tools()
    except UmsatzError as e:
        logger.error(e.diagnostic())
        return 1

    request = Request(
        year=args.year,
        type_arg=args.type_arg,
        account=account,
        sign=sign,
        prefix=args.prefix,
        pdf_header=args.pdf_header,
        limit=args.limit,
        emit_files=emit_files,
    )
    logger.info(f"Analysing account {account}, year {args.year}, type '{args.type_arg}', sign '{sign.value}'")
    result = run_request(request, settings, stream=sys.stdout)
    sys.stdout.write('\n')
    return result.exit_code


if __name__ == '__main__':
    sys.exit(main())
