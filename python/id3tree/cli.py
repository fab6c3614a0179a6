"""Self-test driver: train on example files, check the training set, save and reload."""

import argparse
import logging
import sys
from typing import List, Optional

from id3tree.tree import DecisionTree

logger = logging.getLogger(__name__)


def self_test(training_file: str, output_file: Optional[str] = None) -> bool:
    """Train on ``training_file``, classify its examples, then save and reload the tree.

    Returns False if the training data could not be loaded or the saved tree
    could not be read back.
    """
    tree = DecisionTree()
    if not tree.load_training_data(training_file):
        print(f"ERROR - Unable to load training file '{training_file}'", file=sys.stderr)
        return False

    print(f"Starting self test using example file `{training_file}`")
    tree.train()
    print("Resulting tree:")
    print(tree)

    matched = 0
    for index, example in enumerate(tree.examples):
        expected = tree.get_class(example.class_id)
        found = tree.classify(example)
        ok = expected == found
        matched += ok
        print("----")
        print(f"Example has outcome of '{expected}'")
        print(f"Classified example {index} ({example}) as class `{found}`")
        print(f"SELF TEST {'SUCCEEDED' if ok else 'FAILED'}!")

    failed = len(tree.examples) - matched
    print(f"\nDone. {matched} examples matched their classification, {failed} did not.")

    output_file = output_file or f"{training_file}.dts"
    print(f"Saving to {output_file}")
    if not tree.save(output_file):
        print(f"ERROR - Unable to save tree to '{output_file}'", file=sys.stderr)
        return False

    print("Finished saving. Now attempting load!")
    loaded = DecisionTree()
    is_loaded = loaded.load(output_file)
    print(f"Load = {is_loaded}")
    if is_loaded:
        print("Loaded tree")
        print(loaded)
    return is_loaded


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="id3tree",
        description="Train ID3 decision trees on example files and round-trip them to disk.",
    )
    parser.add_argument("files", nargs="+", help="Training-data files (.examples)")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Where to save the tree (single input only, default: <file>.dts)",
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Only log warnings and errors"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log every split decision"
    )
    args = parser.parse_args(argv)

    if args.output and len(args.files) > 1:
        parser.error("--output can only be used with a single input file")

    level = logging.INFO
    if args.quiet:
        level = logging.WARNING
    elif args.verbose:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    passed = True
    for training_file in args.files:
        passed &= self_test(training_file, args.output)
    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
