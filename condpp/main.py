import argparse
import logging
import os
import sys
from colorama import init, Fore

from .config import Config
from .errors import PreprocessorError
from .includes import FileIncludes
from .preprocessor import process, process_file

init(autoreset=True)

def build_parser():
    parser = argparse.ArgumentParser(prog="condpp", description="condpp - conditional text preprocessor")
    parser.add_argument("files", nargs="*", default=["-"], help="Files to preprocess ('-' reads stdin)")
    parser.add_argument("--define", help="Macro definitions (e.g. 'WIN64=1,DEBUG=0,FLAG')")
    parser.add_argument("-D", dest="defines", action="append", default=[], metavar="NAME[=VALUE]",
                        help="Define a single macro; may be repeated")
    parser.add_argument("-I", dest="include_paths", action="append", default=[], metavar="DIR",
                        help="Add a directory to the #include search path")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument("--output", "-o", help="Write the output here instead of stdout")
    parser.add_argument("--no-includes", action="store_true", help="Reject every #include")
    parser.add_argument("--strip-comments", action="store_true", help="Remove // comments from the output")
    parser.add_argument("--max-include-depth", type=int, help="Fail on #include nested deeper than this")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug information to stderr")
    return parser

def load_config(args):
    config = Config()
    if args.config:
        config.load(args.config)
    if args.define:
        config.parse_defines(args.define)
    for define in args.defines:
        name, sep, value = define.partition('=')
        config.define(name, value if sep else "1")
    for path in args.include_paths:
        if path not in config.include_paths:
            config.include_paths.append(path)
    if args.no_includes:
        config.includes_enabled = False
    if args.strip_comments:
        config.strip_comments = True
    if args.max_include_depth is not None:
        config.max_include_depth = args.max_include_depth
    return config

def preprocess_one(source, config):
    if source == "-":
        return process(sys.stdin, config.context(), "<stdin>")

    includes = config.resolver()
    # Includes are looked up next to the including file first
    if isinstance(includes, FileIncludes):
        includes.add_search_path(os.path.dirname(os.path.abspath(source)), first=True)
    return process_file(source, config.context(includes))

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        config = load_config(args)
    except ValueError as e:
        print(Fore.RED + f"Error: {e}", file=sys.stderr)
        return 1

    results = []
    failed = 0
    for source in args.files:
        try:
            results.append(preprocess_one(source, config))
        except PreprocessorError as e:
            failed += 1
            location = e.source or source
            line = f"{location}:{e.line}" if e.line is not None else location
            print(f"{Fore.MAGENTA}{line}: {Fore.RED}error: {e.reason}", file=sys.stderr)

    text = "".join(results)
    if args.output:
        with open(args.output, 'w', encoding='utf-8', newline='') as f:
            f.write(text)
        print(Fore.CYAN + f"Output saved to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(text)

    if failed:
        print(Fore.RED + f"{failed} of {len(args.files)} files failed.", file=sys.stderr)
        return 1
    if args.verbose:
        print(Fore.GREEN + f"Processed {len(args.files)} files.", file=sys.stderr)
    return 0

if __name__ == "__main__":
    sys.exit(main())
