"""Command line entry point for depfetch."""

import argparse
import logging
import os
import sys

from depfetch.common.logging_utils import configure_logging
from depfetch.config import load_config, save_config
from depfetch.constants import ExitCodes
from depfetch.errors import ConfigurationFailure, ResolutionError
from depfetch.library import UserLibrary
from depfetch.models import ArtifactCoordinate, RepositoryDescriptor


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="depfetch",
        description="Resolve, fetch and cache Maven artifacts and their dependencies",
        add_help=True,
    )
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to the YAML repositories file",
                        action="store", type=str)
    parser.add_argument("--local-repo",
                        dest="LOCAL_REPO",
                        help="Local repository directory (default ~/.m2/repository)",
                        action="store", type=str)
    parser.add_argument("--releases-only",
                        dest="RELEASES_ONLY",
                        help="Ignore snapshot repositories and snapshot versions",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store", type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store", type=str)

    sub = parser.add_subparsers(dest="COMMAND", required=True)

    versions = sub.add_parser("versions", help="List versions matching a range, with their repository")
    versions.add_argument("coordinate", help="group:artifact:range, e.g. org.x:y:[1.0,)")

    latest = sub.add_parser("latest", help="Print the latest release matching a range")
    latest.add_argument("coordinate", help="group:artifact:range")

    fetch = sub.add_parser("fetch", help="Download and install artifacts; prints the first one's path")
    fetch.add_argument("coordinates", nargs="+", help="group:artifact[:ext[:classifier]]:version")
    fetch.add_argument("-r", "--repository", dest="REPOSITORY", help="Only use this repository id")
    fetch.add_argument("--library", dest="LIBRARY", help="Register the fetched jar in this library directory")

    classpath = sub.add_parser("classpath", help="Print the dependency classpath of an artifact")
    classpath.add_argument("coordinate", help="group:artifact:version")
    classpath.add_argument("-r", "--repository", dest="REPOSITORY", help="Only use this repository id")
    classpath.add_argument("-x", "--exclude", dest="EXCLUDES", action="append", default=[],
                           help="Exclude group:artifact (wildcard * allowed); repeatable")

    validate = sub.add_parser("validate", help="Check that a repository is reachable")
    validate.add_argument("id")
    validate.add_argument("url")
    validate.add_argument("--type", dest="TYPE", default="default")
    validate.add_argument("-u", "--username", dest="USERNAME")
    validate.add_argument("-p", "--password", dest="PASSWORD")

    repos = sub.add_parser("repos", help="List, add or remove user repositories")
    repos.add_argument("action", choices=["list", "add", "remove"])
    repos.add_argument("id", nargs="?")
    repos.add_argument("url", nargs="?")
    repos.add_argument("--type", dest="TYPE", default="default")
    repos.add_argument("-u", "--username", dest="USERNAME")
    repos.add_argument("-p", "--password", dest="PASSWORD")

    return parser.parse_args(argv)


def _parse_exclusion(text):
    parts = text.split(":")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Exclusion must be group:artifact, got {text!r}")
    return parts[0], parts[1]


def _pick_repository(system, repository_id):
    if not repository_id:
        return None
    descriptor = system.registry.find(repository_id)
    if descriptor is None:
        raise ConfigurationFailure(f"Unknown repository id '{repository_id}'")
    return system.registry.build_repository(descriptor)


def run(args) -> int:
    """Execute a parsed command; returns the exit code."""
    # Imported lazily so --help stays light
    from depfetch.engine import RepositorySystem  # pylint: disable=import-outside-toplevel

    config = load_config(args.CONFIG)
    if args.LOCAL_REPO:
        config.local_repository = os.path.abspath(os.path.expanduser(args.LOCAL_REPO))
    if args.RELEASES_ONLY:
        config.releases_only = True
    system = RepositorySystem(config)

    if args.COMMAND == "versions":
        result = system.find_versions(ArtifactCoordinate.parse(args.coordinate))
        for version in result.candidates:
            print(f"{version}\t{result.repository_for(version) or ''}")
        return ExitCodes.SUCCESS.value if result.candidates else ExitCodes.NOT_RESOLVED.value

    if args.COMMAND == "latest":
        version = system.find_latest_version(ArtifactCoordinate.parse(args.coordinate))
        if version is None:
            logging.error("No release found for %s", args.coordinate)
            return ExitCodes.NOT_RESOLVED.value
        print(version)
        return ExitCodes.SUCCESS.value

    if args.COMMAND == "fetch":
        coordinates = [ArtifactCoordinate.parse(c) for c in args.coordinates]
        path = system.resolve_artifacts(_pick_repository(system, args.REPOSITORY), *coordinates)
        if not path:
            logging.error("Could not resolve %s", coordinates[0])
            return ExitCodes.NOT_RESOLVED.value
        if args.LIBRARY:
            UserLibrary(args.LIBRARY).add_jar_paths([path])
        print(path)
        return ExitCodes.SUCCESS.value

    if args.COMMAND == "classpath":
        exclusions = [_parse_exclusion(e) for e in args.EXCLUDES]
        repository = _pick_repository(system, args.REPOSITORY)
        try:
            paths = system.graph.resolve_classpath(
                ArtifactCoordinate.parse(args.coordinate), repository, exclusions, raise_errors=True,
            )
        except ResolutionError as exc:
            logging.error("Could not resolve the classpath of %s: %s", args.coordinate, exc.message)
            return ExitCodes.NOT_RESOLVED.value
        print(os.pathsep.join(paths))
        return ExitCodes.SUCCESS.value

    if args.COMMAND == "validate":
        descriptor = RepositoryDescriptor.create(args.id, args.TYPE, args.url, args.USERNAME, args.PASSWORD)
        message = system.validate_repository(descriptor)
        if message:
            print(message)
            return ExitCodes.CONNECTION_ERROR.value
        print("OK")
        return ExitCodes.SUCCESS.value

    # repos
    if args.action == "list":
        for descriptor in system.registry.list_repositories():
            print(f"{descriptor.id}\t{descriptor.url}")
        return ExitCodes.SUCCESS.value
    if not args.id:
        logging.error("A repository id is required")
        return ExitCodes.CONFIG_ERROR.value
    if args.action == "add":
        if not args.url:
            logging.error("A repository url is required")
            return ExitCodes.CONFIG_ERROR.value
        descriptor = RepositoryDescriptor.create(args.id, args.TYPE, args.url, args.USERNAME, args.PASSWORD)
        message = system.validate_repository(descriptor)
        if message:
            logging.error("Repository %s is not usable: %s", args.id, message)
            return ExitCodes.CONNECTION_ERROR.value
        system.registry.add(descriptor)
    elif not system.registry.remove(args.id):
        logging.error("No user repository named %s", args.id)
        return ExitCodes.CONFIG_ERROR.value
    save_config(config, args.CONFIG)
    return ExitCodes.SUCCESS.value


def main(argv=None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)
    try:
        code = run(args)
    except ConfigurationFailure as exc:
        logging.error("%s", exc.message)
        code = ExitCodes.CONFIG_ERROR.value
    except ValueError as exc:
        logging.error("%s", exc)
        code = ExitCodes.FILE_ERROR.value
    sys.exit(code)


if __name__ == "__main__":
    main()
