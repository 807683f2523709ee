#!/usr/bin/env python3
"""
Command-line interface for the SA ID password cracker.
"""

import argparse
import multiprocessing
import sys
import time
from typing import List, Optional

from sa_id_cracker.core.cracker import BruteForceSearch, DocumentCracker
from sa_id_cracker.core.generator import CandidateGenerator
from sa_id_cracker.core.pattern import GenderType, parse_pattern
from sa_id_cracker.core.worker import PdfPasswordTester, StriataPasswordTester
from sa_id_cracker.utils.config import Config, verbosity_to_level
from sa_id_cracker.utils.exceptions import ConfigError, IdCrackerError
from sa_id_cracker.utils.logger import Logger


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser"""
    parser = argparse.ArgumentParser(
        description="Recover a document password that is a South African ID number",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("document", nargs="?",
                        help="Path to the password-protected PDF (or EMC with --emc)")

    pattern_group = parser.add_argument_group("Identity Number Options")
    pattern_group.add_argument(
        "-m",
        "--mask",
        required=True,
        help="13 character ID number with * for unknown digits, e.g. 920220****08*",
    )
    pattern_group.add_argument(
        "-g",
        "--gender",
        choices=[g.value for g in GenderType],
        help="Only try this gender when the gender digit is unknown",
    )
    pattern_group.add_argument(
        "--obsolete-digits",
        nargs="+",
        type=int,
        help="Digits to try for an unknown 12th digit (default: 8 9)",
    )
    pattern_group.add_argument(
        "--all-obsolete",
        action="store_true",
        help="Try every digit 0-9 for an unknown 12th digit",
    )
    pattern_group.add_argument(
        "--legacy-sequence",
        action="store_true",
        default=None,
        help="Narrow partially known sequence digits the old additive way",
    )
    pattern_group.add_argument(
        "--list",
        action="store_true",
        help="Print the candidate ID numbers and exit without testing a document",
    )

    document_group = parser.add_argument_group("Document Options")
    document_group.add_argument(
        "--emc",
        action="store_true",
        help="Document is a Striata EMC file, opened with striata-readerc",
    )
    document_group.add_argument(
        "--extract-dir",
        default="extracted",
        help="Directory striata-readerc extracts EMC contents into",
    )
    document_group.add_argument(
        "--copy-to",
        help="Copy the unlocked document into this directory as <password>_<name>",
    )

    performance_group = parser.add_argument_group("Performance Options")
    performance_group.add_argument(
        "-p",
        "--processes",
        type=int,
        help="Number of workers to use (default: CPU count - 1)",
    )
    performance_group.add_argument(
        "-b", "--batch-size", type=int, help="Candidates handed to a worker at a time"
    )
    performance_group.add_argument(
        "--backend",
        choices=list(BruteForceSearch.BACKENDS),
        help="Run workers as processes or threads",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "-v",
        "--verbosity",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Logging verbosity level",
    )
    output_group.add_argument("--log-file", help="Save log output to this file")
    output_group.add_argument("--output-file", help="Save found password to this file")
    output_group.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress standard output messages"
    )
    output_group.add_argument(
        "--no-progress", action="store_true", help="Do not show a progress bar"
    )

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument("--config", help="Path to configuration file")
    config_group.add_argument(
        "--save-config",
        action="store_true",
        help="Save current settings as default configuration",
    )

    return parser


def resolve_settings(args, config: Config) -> None:
    """Let command-line arguments override the configuration"""
    overrides = {
        "processes": args.processes,
        "batch_size": args.batch_size,
        "backend": args.backend,
        "verbosity": args.verbosity,
        "log_file": args.log_file,
        "gender": args.gender,
        "obsolete_digits": list(range(10)) if args.all_obsolete else args.obsolete_digits,
        "legacy_sequence_range": args.legacy_sequence,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)
    if args.no_progress or args.quiet:
        config.set("progress", False)


def setup_logger(args, config: Config) -> Logger:
    """Set up logging based on command-line arguments and config"""
    return Logger(
        name="sa_id_cracker",
        log_file=config.get("log_file"),
        level=verbosity_to_level(config.get("verbosity", "info")),
        console=not args.quiet,
    )


def print_system_info(logger) -> None:
    """Print system information useful for debugging"""
    import platform
    import pikepdf

    logger.debug("=== System Information ===")
    logger.debug(f"Python version: {platform.python_version()}")
    logger.debug(f"Platform: {platform.platform()}")
    logger.debug(f"CPU count: {multiprocessing.cpu_count()}")
    logger.debug(f"pikepdf version: {pikepdf.__version__}")
    logger.debug("=========================")


def list_candidates(generator: CandidateGenerator, logger) -> int:
    """Print every candidate to stdout"""
    total = 0
    for candidate in generator.generate():
        print(candidate)
        total += 1
    logger.info(f"Generated {total:,} ID numbers matching {generator.pattern.mask()}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the SA ID password cracker CLI

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.list and not args.document:
        parser.error("a document is required unless --list is given")

    config = Config(args.config)
    resolve_settings(args, config)

    logger = setup_logger(args, config).get_logger()

    try:
        print_system_info(logger)

        if args.save_config:
            config.save()
            logger.info(f"Configuration saved to {config.config_path}")

        pattern = parse_pattern(args.mask)
        gender = None
        if config.get("gender"):
            try:
                gender = GenderType(config.get("gender"))
            except ValueError:
                raise ConfigError(f"Unknown gender in configuration: {config.get('gender')!r}")
        obsolete_digits = config.get("obsolete_digits") or [8, 9]
        legacy_sequence_range = bool(config.get("legacy_sequence_range"))

        if args.list:
            generator = CandidateGenerator(pattern, gender,
                                           obsolete_digits=obsolete_digits,
                                           legacy_sequence_range=legacy_sequence_range)
            return list_candidates(generator, logger)

        if args.emc:
            tester = StriataPasswordTester(args.document, args.extract_dir)
        else:
            tester = PdfPasswordTester(args.document)

        search = BruteForceSearch(
            processes=config.get("processes"),
            batch_size=config.get("batch_size") or 256,
            backend=config.get("backend") or "process",
            progress=config.get("progress", True),
            logger=logger,
        )
        cracker = DocumentCracker(tester, search=search, output_dir=args.copy_to, logger=logger)

        start_time = time.time()
        result = cracker.crack(pattern, gender,
                               obsolete_digits=obsolete_digits,
                               legacy_sequence_range=legacy_sequence_range)

        if result.found:
            logger.info("Password found!")
            logger.info(f"Password: {result.password}")
            logger.info(f"Total time: {time.time() - start_time:.2f} seconds")

            if args.output_file:
                with open(args.output_file, "w") as f:
                    f.write(f"Document: {args.document}\nPassword: {result.password}\n")
                logger.info(f"Password saved to {args.output_file}")

            return 0

        if not args.quiet:
            print("\n" + "=" * 60)
            print("PASSWORD NOT FOUND AMONG THE VALID ID NUMBERS FOR THIS MASK")
            print("=" * 60)
            print("\nSuggestions for next steps:")
            print("1. Drop the gender hint (-g)")
            print("2. Try every value of the 12th digit (--all-obsolete)")
            print("3. Mask digits you are not certain of")
            print("\nExample: sa-id-cracker %s -m %s --all-obsolete"
                  % (args.document, pattern.mask()))

        logger.warning(f"Exhausted {result.tried:,} candidates for {pattern.mask()}")
        return 1

    except IdCrackerError as e:
        logger.error(f"Error: {str(e)}")
        return 1
    except KeyboardInterrupt:
        logger.info("\nProcess interrupted by user.")
        return 130


def display_examples():
    """Display usage examples"""
    examples = [
        "Basic usage:",
        "  sa-id-cracker statement.pdf -m 920220****08*",
        "",
        "Only male ID numbers:",
        "  sa-id-cracker statement.pdf -m 920220****08* -g male",
        "",
        "Unknown day of birth and checksum:",
        "  sa-id-cracker statement.pdf -m 9202**510908*",
        "",
        "Just list the candidates:",
        "  sa-id-cracker -m 920220510908* --list",
        "",
        "Striata EMC file:",
        "  sa-id-cracker statement.emc -m 920220****08* --emc --extract-dir out",
        "",
        "Control CPU usage:",
        "  sa-id-cracker statement.pdf -m 920220****08* -p 2",
        "",
        "Save configuration for future use:",
        "  sa-id-cracker statement.pdf -m 920220****08* -g female --save-config",
        "",
        "For more options:",
        "  sa-id-cracker -h",
    ]

    print("\n".join(examples))


if __name__ == "__main__":
    if len(sys.argv) == 1:
        display_examples()
        sys.exit(1)

    sys.exit(main())
