"""
Command-line entry point

    python -m tree_shell                      read commands from stdin
    python -m tree_shell -c "ls | wc -l"      run one command line
"""
import argparse
import logging
import sys

from .config import ShellConfig
from .exit_status import is_terminate, to_exit_code
from .shell import Shell


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tree_shell',
        description='Execute command lines joined by ; && || | and &',
    )
    parser.add_argument('-c', dest='command', help='Command line to execute')
    parser.add_argument('--loose-assignments', action='store_true',
                        help="Treat any verb containing '=' as an assignment")
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='More logging (-v info, -vv debug)')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    config = ShellConfig.from_environ()
    if args.loose_assignments:
        config.strict_assignments = False
    if args.verbose:
        config.log_level = 'DEBUG' if args.verbose > 1 else 'INFO'

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format='%(levelname)s - %(name)s - %(message)s',
        stream=sys.stderr,
    )

    shell = Shell(config)

    if args.command is not None:
        status = shell.run_line(args.command)
        if is_terminate(status):
            return to_exit_code(shell.last_status)
        return to_exit_code(status)

    return to_exit_code(shell.run())


if __name__ == '__main__':
    sys.exit(main())
