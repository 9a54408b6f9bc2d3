#!/usr/bin/env python3
"""
PseudoRun CLI
Interpreter for the BEGIN/END teaching pseudocode.

Runs programs in batch mode, steps through them with breakpoints, and
checks block structure without executing.

Usage:
    pseudorun run <program.txt> [options]
    pseudorun debug <program.txt> [-b LINE ...]
    pseudorun validate <program.txt>
    pseudorun config [options]
    pseudorun info
"""

import sys
import os
import json
import argparse
import logging
from typing import Optional
from dataclasses import dataclass, asdict, fields

from pseudorun.modules.MyEnums import StepStates
from pseudorun.modules.ExecutionDriver import RunResult, SteppedSession, run
from pseudorun.modules.InterpreterHelper import (validate_source, DEFAULT_COMMENT_CHAR,
                                                 DEFAULT_MAX_REPEAT_ITERATIONS)


@dataclass
class InterpreterConfig:
    """Interpreter configuration with all tunable parameters"""
    comment_char: str = DEFAULT_COMMENT_CHAR
    max_repeat_iterations: int = DEFAULT_MAX_REPEAT_ITERATIONS
    show_variables: bool = True
    debug_mode: bool = False
    verbose: bool = False

    @classmethod
    def from_file(cls, config_path: str) -> 'InterpreterConfig':
        """Load configuration from JSON file; a missing file means defaults"""
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            return cls()
        except json.JSONDecodeError as e:
            print(f"Error: Invalid config file {config_path}: {e}")
            sys.exit(1)

        if not isinstance(data, dict):
            print(f"Error: Config file {config_path} must hold a JSON object")
            sys.exit(1)
        unknown = sorted(set(data) - {f.name for f in fields(cls)})
        if unknown:
            print(f"Error: Unknown settings in {config_path}: {', '.join(unknown)}")
            sys.exit(1)
        config = cls(**data)
        if not isinstance(config.max_repeat_iterations, int) or config.max_repeat_iterations < 1:
            print(f"Error: max_repeat_iterations must be a positive integer in {config_path}")
            sys.exit(1)
        return config

    def to_file(self, config_path: str) -> None:
        """Save configuration to JSON file"""
        with open(config_path, 'w') as f:
            json.dump(asdict(self), f, indent=4)
        print(f"Configuration saved to: {config_path}")

    def display(self) -> None:
        """Display current configuration"""
        print("\n=== Interpreter Configuration ===")
        print(f"  Comment prefix:           {self.comment_char}")
        print(f"  REPEAT iteration limit:   {self.max_repeat_iterations}")
        print(f"  Show variables:           {'enabled' if self.show_variables else 'disabled'}")
        print(f"  Debug mode:               {'enabled' if self.debug_mode else 'disabled'}")
        print(f"  Verbose output:           {'enabled' if self.verbose else 'disabled'}")
        print()


class InterpreterCLI:
    """Command-line interface for the PseudoRun interpreter"""

    DEFAULT_CONFIG_PATH = 'pseudorun.config.json'

    def __init__(self):
        self.config = InterpreterConfig()

    def load_config(self, config_path: Optional[str] = None) -> None:
        """Load configuration from file"""
        path = config_path or self.DEFAULT_CONFIG_PATH
        if os.path.exists(path):
            self.config = InterpreterConfig.from_file(path)
            if self.config.verbose:
                print(f"Loaded configuration from: {path}")

    LOG_FORMATS = {
        logging.DEBUG: '%(levelname)s [%(name)s]: %(message)s',
        logging.INFO: '%(levelname)s: %(message)s',
        logging.WARNING: '%(message)s',
    }

    def _log_level(self) -> int:
        if self.config.debug_mode:
            return logging.DEBUG
        return logging.INFO if self.config.verbose else logging.WARNING

    def _setup_logging(self) -> None:
        """Engine warnings (ignored statements) always show; -v adds run summaries, -d statement traces"""
        level = self._log_level()
        logging.basicConfig(level=level, format=self.LOG_FORMATS[level], force=True)

    def _read_source(self, input_file: str) -> str:
        if not os.path.exists(input_file):
            print(f"Error: Input file '{input_file}' not found")
            sys.exit(1)
        with open(input_file, 'r', encoding='utf-8') as f:
            return f.read()

    def run(self, input_file: str) -> int:
        """Run a program to completion"""
        self._setup_logging()
        source = self._read_source(input_file)

        if self.config.verbose:
            print(f"\n=== PseudoRun ===")
            print(f"Input: {input_file}\n")

        result = run(source,
                     comment_char=self.config.comment_char,
                     max_repeat_iterations=self.config.max_repeat_iterations,
                     output_callback=print)

        if self.config.show_variables:
            self._show_variables(result)

        if result.error is not None:
            print(f"\nError: {result.error.message}")
            return 1
        return 0

    def _show_variables(self, result: RunResult) -> None:
        if not result.final_variables:
            return
        print("\n=== Variables ===")
        for name, value in result.final_variables.items():
            print(f"  {name:12s} = {value}  ({value.value_type})")

    def validate(self, input_file: str) -> int:
        """Check block structure without executing"""
        self._setup_logging()
        source = self._read_source(input_file)

        print(f"\n=== Validating {input_file} ===\n")
        errors = validate_source(source, self.config.comment_char)
        if errors:
            for error in errors:
                print(f"✗ {error.message}")
            print(f"\n{len(errors)} problem(s) found")
            return 1

        print("✓ Structure validation passed")
        print(f"  Total lines: {len(source.splitlines())}")
        return 0

    def debug(self, input_file: str, breakpoints: list[int]) -> int:
        """Interactive stepped session"""
        self._setup_logging()
        source = self._read_source(input_file)
        session = SteppedSession(source, [b - 1 for b in breakpoints],
                                 comment_char=self.config.comment_char,
                                 max_repeat_iterations=self.config.max_repeat_iterations,
                                 output_callback=lambda text: print(f"OUTPUT: {text}"))
        debugger = Debugger(session, source.splitlines())
        debugger.run_interactive()
        return 1 if session.state == StepStates.ERROR else 0

    def show_info(self) -> None:
        """Display interpreter information and capabilities"""
        print("\n" + "="*60)
        print(" "*20 + "PseudoRun Interpreter")
        print("="*60)
        print("\nSupported statements:")
        print("  • BEGIN ... END blocks")
        print("  • OUTPUT / DISPLAY / SHOW <variable or text>")
        print("  • <name> = <expression>   (+ - * / ( ), comparisons, strings)")
        print("  • IF <a> <op> <b> THEN ... [ELSE ...] ENDIF")
        print("  • FOR <v> = <a> TO <b> DO ... END")
        print("  • WHILE <a> <op> <b> ... ENDWHILE")
        print("  • REPEAT ... UNTIL <a> <op> <b>")
        print("\nCondition operators: >  <  ==  !=")
        print(f"Comment prefix: {self.config.comment_char}")
        print(f"REPEAT iteration limit: {self.config.max_repeat_iterations}")

        print("\nCommand-Line Usage:")
        print("  pseudorun run <program.txt> [options]")
        print("  pseudorun debug <program.txt> [-b LINE ...]")
        print("  pseudorun validate <program.txt>")
        print("  pseudorun config [options]")
        print("  pseudorun info")
        print("="*60 + "\n")


class Debugger:
    """Interactive stepping front end over a SteppedSession"""

    def __init__(self, session: SteppedSession, source_lines: list[str]):
        self.session = session
        self.source_lines = source_lines
        self.running = True

    def run_interactive(self) -> None:
        print("PseudoRun debugger")
        print("Type 'help' for commands")

        while self.running:
            try:
                command = input(f"({self._location()})> ").strip().split()
                if not command:
                    continue

                self.execute_command(command)

            except KeyboardInterrupt:
                print("\nDebugger interrupted")
                break
            except EOFError:
                print("\nDebugger exiting")
                break

    def _location(self) -> str:
        line = self.session.current_line
        return str(self.session.state) if line is None else f"line {line + 1}"

    def execute_command(self, command: list[str]) -> None:
        """Execute debugger command"""
        cmd = command[0].lower()

        if cmd in ['help', 'h']:
            self.print_help()

        elif cmd in ['step', 's']:
            count = 1
            if len(command) > 1:
                try:
                    count = int(command[1])
                except ValueError:
                    print("Invalid step count")
                    return
            for _ in range(count):
                state = self.session.step()
                if state != StepStates.READY:
                    break
            self.report_state()

        elif cmd in ['continue', 'c']:
            self.session.resume()
            self.report_state()

        elif cmd in ['break', 'b']:
            line = self._parse_line_arg(command, "break <line>")
            if line is not None:
                self.session.add_breakpoint(line - 1)
                print(f"Breakpoint set at line {line}")

        elif cmd in ['clear']:
            line = self._parse_line_arg(command, "clear <line>")
            if line is not None:
                self.session.remove_breakpoint(line - 1)
                print(f"Breakpoint cleared at line {line}")

        elif cmd in ['vars', 'v']:
            variables = self.session.result.final_variables
            if not variables:
                print("No variables")
            for name, value in variables.items():
                print(f"{name} = {value}")

        elif cmd in ['output', 'o']:
            for text in self.session.result.output_lines:
                print(text)

        elif cmd in ['where', 'w']:
            line = self.session.current_line
            if line is None:
                print(f"Program {self.session.state}")
            else:
                print(f"{line + 1:4d}: {self.source_lines[line]}")

        elif cmd in ['quit', 'q', 'exit']:
            self.running = False

        else:
            print(f"Unknown command: {cmd}. Type 'help' for commands")

    def _parse_line_arg(self, command: list[str], usage: str) -> int | None:
        if len(command) < 2:
            print(f"Usage: {usage}")
            return None
        try:
            return int(command[1])
        except ValueError:
            print("Invalid line number")
            return None

    def report_state(self) -> None:
        state = self.session.state
        if state == StepStates.PAUSED:
            print(f"Breakpoint hit at line {self.session.current_line + 1}")
        elif state == StepStates.FINISHED:
            print("Program finished")
            self.running = False
        elif state == StepStates.ERROR:
            print(f"Error: {self.session.error.message}")
            self.running = False

    def print_help(self) -> None:
        print("Commands:")
        print("  step [n]      Execute n statements (default 1)")
        print("  continue      Run until breakpoint or end")
        print("  break <line>  Set breakpoint (1-based line)")
        print("  clear <line>  Clear breakpoint")
        print("  vars          Show variables")
        print("  output        Show output so far")
        print("  where         Show next line")
        print("  quit          Leave the debugger")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser"""
    parser = argparse.ArgumentParser(
        prog='pseudorun',
        description='PseudoRun pseudocode interpreter',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a program
  pseudorun run program.txt

  # Step through with breakpoints on lines 3 and 7
  pseudorun debug program.txt -b 3 -b 7

  # Save configuration
  pseudorun config --max-repeat 5000 --save

  # Check structure only
  pseudorun validate program.txt
        """
    )

    # Global options
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='Load configuration from JSON file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose output')
    parser.add_argument('-d', '--debug', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Run a program')
    run_parser.add_argument('input', help='Program source file')
    run_parser.add_argument('--no-vars', action='store_true',
                            help='Do not print the variable table')
    run_parser.add_argument('--comment-char', metavar='CHAR',
                            help=f'Comment prefix (default: {DEFAULT_COMMENT_CHAR})')
    run_parser.add_argument('--max-repeat', type=int, metavar='N',
                            help=f'REPEAT-UNTIL iteration limit (default: {DEFAULT_MAX_REPEAT_ITERATIONS})')

    # Debug command
    debug_parser = subparsers.add_parser('debug', help='Step through a program')
    debug_parser.add_argument('input', help='Program source file')
    debug_parser.add_argument('-b', '--break', dest='breakpoints', type=int, action='append',
                              default=[], metavar='LINE', help='Breakpoint line (1-based), repeatable')

    # Config command
    config_parser = subparsers.add_parser('config', help='Manage configuration')
    config_parser.add_argument('--show', action='store_true',
                               help='Display current configuration')
    config_parser.add_argument('--save', action='store_true',
                               help='Save current configuration to file')
    config_parser.add_argument('--reset', action='store_true',
                               help='Reset to default configuration')
    config_parser.add_argument('--comment-char', metavar='CHAR')
    config_parser.add_argument('--max-repeat', type=int, metavar='N')

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Check block structure')
    validate_parser.add_argument('input', help='Program source file')

    # Info command
    subparsers.add_parser('info', help='Show interpreter information')

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Show help if no command provided
    if not args.command:
        parser.print_help()
        return 0

    cli = InterpreterCLI()

    if args.config:
        cli.load_config(args.config)
    else:
        cli.load_config()  # Try to load default config

    if args.verbose:
        cli.config.verbose = True
    if args.debug:
        cli.config.debug_mode = True

    if args.command in ('run', 'config'):
        if args.comment_char is not None:
            cli.config.comment_char = args.comment_char
        if args.max_repeat is not None:
            cli.config.max_repeat_iterations = args.max_repeat

    if args.command == 'run':
        if args.no_vars:
            cli.config.show_variables = False
        return cli.run(args.input)

    elif args.command == 'debug':
        return cli.debug(args.input, args.breakpoints)

    elif args.command == 'config':
        if args.reset:
            cli.config = InterpreterConfig()
            print("Configuration reset to defaults")

        if args.save:
            cli.config.to_file(args.config or cli.DEFAULT_CONFIG_PATH)

        if args.show or not (args.save or args.reset):
            cli.config.display()
        return 0

    elif args.command == 'validate':
        return cli.validate(args.input)

    elif args.command == 'info':
        cli.show_info()
        return 0

    return 0


def entry_point() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)


if __name__ == '__main__':
    entry_point()
