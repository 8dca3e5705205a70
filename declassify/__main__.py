import argparse
import logging
import os
import sys
from typing import Iterator, List

from .core.ast_parser import should_skip_directory
from .core.pipeline import DeclassifyTransformer, TransformResult
from .setting import DeclassifySettings, get_settings, load_settings


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


logger = logging.getLogger(__name__)


def iter_source_files(paths: List[str], settings: DeclassifySettings) -> Iterator[str]:
    """Yield the supported files under ``paths`` in sorted order."""
    extensions = {ext.lower() for ext in settings.extensions}
    skipped = set(settings.skip_directories)
    for path in paths:
        if os.path.isfile(path):
            yield path
            continue
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames[:] = sorted(
                d for d in dirnames if not should_skip_directory(d, skipped)
            )
            for fname in sorted(filenames):
                if os.path.splitext(fname)[1].lower() in extensions:
                    yield os.path.join(dirpath, fname)


def _report(result: TransformResult) -> None:
    for outcome in result.outcomes:
        if outcome.status == "failed":
            logger.warning(
                f"{result.file_path}:{outcome.line}: {outcome.name or '<anonymous>'}: {outcome.message}"
            )


def main(argv: List[str] = None) -> int:
    """Main entry point for declassify."""
    parser = argparse.ArgumentParser(
        description="declassify - rewrite React class components as function components"
    )
    parser.add_argument(
        "paths",
        nargs="+",
        metavar="PATH",
        help="Source files or directories to transform"
    )
    parser.add_argument(
        "--write",
        action="store_true",
        help="Write transformed files in place"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 if any file would change"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML settings file (default: config/declassify.yaml)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    settings = load_settings(args.config) if args.config else get_settings()
    transformer = DeclassifyTransformer(settings)

    for path in args.paths:
        if not os.path.exists(path):
            parser.error(f"No such file or directory: {path}")

    files = list(iter_source_files(args.paths, settings))
    single = len(files) == 1 and os.path.isfile(args.paths[0]) and len(args.paths) == 1
    changed: List[str] = []

    for file_path in files:
        try:
            result = transformer.transform_file(file_path)
        except ValueError as e:
            logger.error(f"{file_path}: {e}")
            return 2
        _report(result)
        if result.changed:
            changed.append(file_path)
            if args.write:
                with open(file_path, "w", encoding="utf-8", newline="") as f:
                    f.write(result.code)
                logger.info(f"Wrote {file_path}")
        if single and not args.write and not args.check:
            sys.stdout.write(result.code)

    logger.info(f"{len(changed)} of {len(files)} file(s) changed")
    if args.check:
        for file_path in changed:
            print(f"would transform {file_path}")
        return 1 if changed else 0
    if not single and not args.write:
        for file_path in changed:
            print(file_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
