"""Command line interface for aurtool."""

import functools
import getpass
import logging
import os
import re
import sys
from enum import IntEnum
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console

from . import __version__
from .api_clients import (
    ActionAPIClient,
    AuthenticationError,
    BadResponseError,
    MissingFileError,
    NetworkError,
    SearchAPIClient,
    SessionAPIClient,
    SnapshotAPIClient,
    Transport,
    UploadAPIClient,
)
from .config import AurtoolConfig, ConfigManager
from .display import (
    make_console,
    package_chart,
    print_chart,
    print_error,
    print_info,
    print_message,
    print_outdated,
    print_package_list,
    print_upgrade_report,
    print_warning,
)
from .local_packages import LocalPackageError, check_upgrades, list_foreign_packages
from .models import ACTIONS, CATEGORY_NAMES, Session, UploadRequest, category_index
from .storage import IgnoreList, SessionStore

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    SUCCESS = 0
    OPT_ERR = 1
    AUR_BAD = 2
    AUR_BAD_AUTH = 3
    INT = 100
    FAIL = 250


# name.src.tar.gz[@category][:comment]
TARBALL_SPEC_RE = re.compile(r"^([^@:]+)(?:@([^@:]+))?(?::(.+))?$")


def handle_client_errors(func):
    """Map client failures escaping a command to messages and exit codes."""

    @functools.wraps(func)
    def wrapper(ctx, *args, **kwargs):
        err_console: Console = ctx.obj["err_console"]
        try:
            return func(ctx, *args, **kwargs)
        except KeyboardInterrupt:
            err_console.print()
            print_error(err_console, "Interrupted by user, terminating...")
            sys.exit(int(ExitCode.INT))
        except AuthenticationError as e:
            print_error(err_console, f"AUR login failed: {e}")
            sys.exit(int(ExitCode.AUR_BAD_AUTH))
        except BadResponseError as e:
            print_error(err_console, str(e))
            sys.exit(int(ExitCode.AUR_BAD))
        except NetworkError as e:
            print_error(err_console, f"Network error: {e}")
            if ctx.obj.get("verbose"):
                import traceback

                err_console.print(traceback.format_exc(), style="dim red", markup=False)
            sys.exit(int(ExitCode.FAIL))

    return wrapper


def session_options(func):
    """Options shared by commands that need an authenticated session."""
    func = click.option(
        "--cookie-jar",
        "-c",
        "cookie_jar",
        is_flag=False,
        flag_value="",
        default=None,
        metavar="[FILE]",
        help="Save the session cookie to FILE (default: ~/.aurtool/cookie)",
    )(func)
    func = click.option(
        "--cookie",
        "-b",
        help="Session cookie (AURSID=...) or a file holding it",
    )(func)
    func = click.option(
        "--user",
        "-u",
        metavar="USER[:PASSWD]",
        help="AUR login; always forces a fresh login",
    )(func)
    return func


def split_credentials(user: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    if not user:
        return None, None
    username, sep, password = user.partition(":")
    return username, (password if sep else None)


def prompt_credentials(username: Optional[str]) -> Tuple[str, str]:
    """Ask for whatever part of the login is missing."""
    if not username:
        username = click.prompt("Username", type=str, err=True)
    password = getpass.getpass("Password: ")
    return username, password


def parse_tarball_spec(spec: str, default_category: Optional[str]) -> UploadRequest:
    """Parse ``tarball[@category][:comment]`` into an upload request.

    Raises:
        click.BadParameter: If the tarball argument or its category is invalid
    """
    match = TARBALL_SPEC_RE.match(spec)
    if not match:
        raise click.BadParameter(f"Cannot parse tarball spec {spec!r}")
    tarball, category_name, comment = match.groups()

    category = default_category
    if category_name:
        category = category_index(category_name)
        if category is None:
            raise click.BadParameter(
                f"Unknown category {category_name!r} in {spec!r}; "
                f"choose from {', '.join(CATEGORY_NAMES)}"
            )
    return UploadRequest(tarball=tarball, category=category, comment=comment)


def _config(ctx) -> AurtoolConfig:
    return ctx.obj["config"]


def _transport(ctx) -> Transport:
    config = _config(ctx)
    return Transport(user_agent=config.user_agent, timeout=config.timeout)


def _prepare_session(
    ctx,
    transport: Transport,
    user: Optional[str],
    cookie: Optional[str],
    cookie_jar: Optional[str],
) -> Session:
    """Resolve the session for a write command and optionally persist it."""
    config = _config(ctx)
    username, password = split_credentials(user)

    client = SessionAPIClient(transport, base_url=config.base_url)
    session = client.resolve_session(
        supplied_cookie=cookie,
        username=username,
        password=password,
        store=SessionStore(config.session_path),
        prompt=prompt_credentials,
    )

    if cookie_jar is not None:
        jar = SessionStore(cookie_jar or config.session_path)
        jar.save(session.cookie)
        logger.debug(f"Session cookie saved to {jar.path}")
    return session


def _read_stdin_comment() -> str:
    return click.get_text_stream("stdin").read()


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "-C",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Config file path (default: ~/.aurtool/config.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--color/--no-color", default=None, help="Turn on/off color output")
@click.option("--quiet", "-q", is_flag=True, help="Reduce output verbosity")
@click.version_option(version=__version__, prog_name="aurtool")
@click.pass_context
def cli(ctx, config_path: Optional[str], verbose: bool, color: Optional[bool], quiet: bool):
    """Search, fetch and maintain packages in the Arch User Repository.

    \b
    EXAMPLES:
      aurtool search -v ffmpeg             # search, sorted by votes
      aurtool derive -t ~/builds x264-git  # fetch build scripts
      aurtool upgrade --ignore foo,bar --remember
      aurtool action vote x264-git -c      # prompt for login, save cookie
      aurtool submit ffcast.src.tar.gz@multimedia:'New release.' -b ~/cookie

    \b
    A comment of '-' (as in foo.src.tar.gz:-) is read from standard input.
    An explicit --user always logs in again, even if a cookie is given.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        config = ConfigManager(Path(config_path) if config_path else None).load()
    except ValueError as e:
        print_error(make_console(stderr=True), str(e))
        sys.exit(int(ExitCode.OPT_ERR))

    colors = config.colors if color is None else color
    ctx.obj["config"] = config
    ctx.obj["console"] = make_console(colors)
    ctx.obj["err_console"] = make_console(colors, stderr=True)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("packages", nargs=-1, required=True)
@click.option(
    "--save-to",
    "-t",
    type=click.Path(file_okay=False),
    help="Save the obtained packages in this directory",
)
@click.pass_context
@handle_client_errors
def derive(ctx, packages: Tuple[str, ...], save_to: Optional[str]):
    """Obtain build scripts for PACKAGES."""
    console, err_console = ctx.obj["console"], ctx.obj["err_console"]
    dest = Path(save_to).expanduser().resolve() if save_to else Path.cwd()

    try:
        dest.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.debug(f"mkdir {dest} failed: {e}")
    if not dest.is_dir() or not os.access(dest, os.W_OK):
        print_error(err_console, f"Directory doesn't exist or not writable: {dest}")
        sys.exit(int(ExitCode.FAIL))

    failed = 0
    config = _config(ctx)
    with _transport(ctx) as transport:
        client = SnapshotAPIClient(transport, base_url=config.base_url)
        for name in packages:
            try:
                client.download(name, dest)
            except BadResponseError as e:
                logger.debug(f"Download of {name} failed: {e}")
                print_error(err_console, f"Failed to download from AUR: {name}")
                failed += 1
                continue
            print_message(console, f"AUR package {name} saved in {dest}")

    if failed:
        sys.exit(int(ExitCode.FAIL))


def _split_ignore(ctx, param, value) -> List[str]:
    names: List[str] = []
    for item in value or ():
        names.extend(n for n in item.split(",") if n)
    return names


@cli.command()
@click.option(
    "--ignore",
    multiple=True,
    callback=_split_ignore,
    metavar="A,B,C",
    help="Do not check the listed packages",
)
@click.option("--remember", is_flag=True, help="Ignore next time those not in AUR")
@click.pass_context
@handle_client_errors
def upgrade(ctx, ignore: List[str], remember: bool):
    """Check installed foreign packages for AUR upgrades."""
    console, err_console = ctx.obj["console"], ctx.obj["err_console"]
    config = _config(ctx)

    ignore_list = IgnoreList(config.ignore_path)
    stored = ignore_list.load()

    try:
        installed = list_foreign_packages()
        with _transport(ctx) as transport:
            client = SearchAPIClient(transport, base_url=config.base_url)
            report = check_upgrades(client, installed, stored + ignore)
    except LocalPackageError as e:
        print_error(err_console, str(e))
        sys.exit(int(ExitCode.FAIL))

    print_upgrade_report(console, report, quiet=ctx.obj["quiet"])

    if remember:
        ignore_list.save(report.not_found + stored)
        print_info(console, f"Packages not in AUR will be skipped: {ignore_list.path}")


@cli.command()
@click.argument("terms", nargs=-1, required=True)
@click.option("--votes", "-v", is_flag=True, help="Sort search results by votes")
@click.pass_context
@handle_client_errors
def search(ctx, terms: Tuple[str, ...], votes: bool):
    """Search for packages by name and description."""
    console = ctx.obj["console"]
    config = _config(ctx)
    sort = "NumVotes" if votes else config.sort

    with _transport(ctx) as transport:
        client = SearchAPIClient(transport, base_url=config.base_url)
        for i, term in enumerate(terms):
            if i:
                console.print("---")
            packages = client.search(term, sort)
            if not packages:
                print_message(console, "No package found.")
                continue
            print_package_list(console, packages)


@cli.command()
@click.argument("maintainers", nargs=-1, required=True)
@click.option(
    "--outofdate", "-o", is_flag=True, help="Print only outdated packages"
)
@click.option("--votes", "-v", is_flag=True, help="Sort search results by votes")
@click.pass_context
@handle_client_errors
def msearch(ctx, maintainers: Tuple[str, ...], outofdate: bool, votes: bool):
    """Search for packages by maintainer."""
    console = ctx.obj["console"]
    config = _config(ctx)
    sort = "NumVotes" if votes else config.sort

    with _transport(ctx) as transport:
        client = SearchAPIClient(transport, base_url=config.base_url)
        for i, maintainer in enumerate(maintainers):
            if i:
                console.print("---")
            packages = client.maintainer_search(maintainer, sort)
            if not packages:
                print_message(console, f"Nothing maintained by {maintainer} is found.")
            elif not outofdate:
                print_package_list(console, packages)
            elif not print_outdated(console, packages):
                console.print(
                    f"{maintainer} is a good maintainer. Nothing is outdated.",
                    markup=False,
                )


@cli.command()
@click.argument("packages", nargs=-1, required=True)
@click.pass_context
@handle_client_errors
def info(ctx, packages: Tuple[str, ...]):
    """Output detailed info for packages, by name or ID."""
    console = ctx.obj["console"]
    config = _config(ctx)

    with _transport(ctx) as transport:
        client = SearchAPIClient(transport, base_url=config.base_url)
        for i, name in enumerate(packages):
            if i:
                console.print("---")
            package = client.info(name)
            if package is None:
                print_message(console, "No such package.")
                continue
            print_chart(console, package_chart(package, config.base_url))


@cli.command()
@click.argument("tarballs", nargs=-1, required=True, metavar="TARBALL[@CATEGORY][:COMMENT]...")
@click.option(
    "--category",
    type=click.Choice(CATEGORY_NAMES),
    help="Category for tarballs that do not name one",
)
@click.option("--vote", "-v", is_flag=True, help="Vote for the uploaded packages")
@session_options
@click.pass_context
@handle_client_errors
def submit(
    ctx,
    tarballs: Tuple[str, ...],
    category: Optional[str],
    vote: bool,
    user: Optional[str],
    cookie: Optional[str],
    cookie_jar: Optional[str],
):
    """Upload .src.tar.gz tarballs to the AUR."""
    console, err_console = ctx.obj["console"], ctx.obj["err_console"]
    config = _config(ctx)
    default_category = category_index(category) if category else None
    requests = [parse_tarball_spec(spec, default_category) for spec in tarballs]

    transport = _transport(ctx)
    try:
        session = _prepare_session(ctx, transport, user, cookie, cookie_jar)
        uploads = UploadAPIClient(transport, session, config.base_url)

        ids: List[int] = []
        failed = 0
        for request in requests:
            if request.comment == "-":
                request = UploadRequest(
                    tarball=request.tarball,
                    category=request.category,
                    comment=_read_stdin_comment(),
                )
            try:
                outcome = uploads.submit(request)
            except MissingFileError as e:
                print_error(err_console, str(e))
                failed += 1
                continue

            if outcome.succeeded:
                print_message(console, outcome.describe())
                ids.append(outcome.package_id)
            else:
                print_error(err_console, outcome.describe())
                failed += 1

        if vote and ids:
            actions = ActionAPIClient(transport, session, config.base_url)
            result = actions.perform_action("vote", ids)
            print_message(console, result or "Unknown error while voting")
    finally:
        transport.close()

    if failed:
        sys.exit(int(ExitCode.FAIL))


@cli.command()
@click.argument("action_name", metavar="ACTION", type=click.Choice(list(ACTIONS)))
@click.argument("packages", nargs=-1, required=True)
@click.option("--id", "by_id", is_flag=True, help="Pass packages by ID instead of name")
@session_options
@click.pass_context
@handle_client_errors
def action(
    ctx,
    action_name: str,
    packages: Tuple[str, ...],
    by_id: bool,
    user: Optional[str],
    cookie: Optional[str],
    cookie_jar: Optional[str],
):
    """Apply ACTION (vote, flag, notify, adopt, ...) to PACKAGES."""
    console, err_console = ctx.obj["console"], ctx.obj["err_console"]
    config = _config(ctx)

    transport = _transport(ctx)
    try:
        session = _prepare_session(ctx, transport, user, cookie, cookie_jar)
        ids = _resolve_ids(ctx, transport, packages, by_id)
        if not ids:
            print_error(err_console, "No ID retrieved for any of the given packages")
            sys.exit(int(ExitCode.FAIL))

        actions = ActionAPIClient(transport, session, config.base_url)
        result = actions.perform_action(action_name, ids)
        print_message(console, result or f"Unknown outcome of {action_name}")
    finally:
        transport.close()


def _resolve_ids(
    ctx, transport: Transport, packages: Tuple[str, ...], by_id: bool
) -> List[str]:
    """Package IDs for names (looked up with info) or IDs passed through."""
    if by_id:
        return list(packages)

    err_console = ctx.obj["err_console"]
    client = SearchAPIClient(transport, base_url=_config(ctx).base_url)
    ids = []
    for name in packages:
        try:
            package = client.info(name)
        except BadResponseError as e:
            logger.debug(f"info {name} failed: {e}")
            package = None
        if package is None:
            print_warning(err_console, f"Failed to retrieve ID for {name}")
            continue
        ids.append(str(package.id))
    return ids


@cli.command()
@click.argument("package")
@click.argument("text")
@click.option("--id", "by_id", is_flag=True, help="PACKAGE is an ID, not a name")
@session_options
@click.pass_context
@handle_client_errors
def comment(
    ctx,
    package: str,
    text: str,
    by_id: bool,
    user: Optional[str],
    cookie: Optional[str],
    cookie_jar: Optional[str],
):
    """Add a comment to PACKAGE; a TEXT of '-' is read from standard input."""
    console, err_console = ctx.obj["console"], ctx.obj["err_console"]
    config = _config(ctx)
    if text == "-":
        text = _read_stdin_comment()

    transport = _transport(ctx)
    try:
        session = _prepare_session(ctx, transport, user, cookie, cookie_jar)
        ids = _resolve_ids(ctx, transport, (package,), by_id)
        if not ids:
            sys.exit(int(ExitCode.FAIL))
        ActionAPIClient(transport, session, config.base_url).add_comment(ids[0], text)
        print_message(console, f"Comment posted on {package}")
    finally:
        transport.close()


@cli.command("delete-comment")
@click.argument("package_id")
@click.argument("comment_id")
@session_options
@click.pass_context
@handle_client_errors
def delete_comment(
    ctx,
    package_id: str,
    comment_id: str,
    user: Optional[str],
    cookie: Optional[str],
    cookie_jar: Optional[str],
):
    """Delete comment COMMENT_ID from package PACKAGE_ID."""
    console = ctx.obj["console"]
    config = _config(ctx)

    transport = _transport(ctx)
    try:
        session = _prepare_session(ctx, transport, user, cookie, cookie_jar)
        ActionAPIClient(transport, session, config.base_url).delete_comment(
            package_id, comment_id
        )
        print_message(console, f"Comment {comment_id} deleted")
    finally:
        transport.close()


@cli.command("set-category")
@click.argument("package")
@click.argument("category", type=click.Choice(CATEGORY_NAMES))
@click.option("--id", "by_id", is_flag=True, help="PACKAGE is an ID, not a name")
@session_options
@click.pass_context
@handle_client_errors
def set_category(
    ctx,
    package: str,
    category: str,
    by_id: bool,
    user: Optional[str],
    cookie: Optional[str],
    cookie_jar: Optional[str],
):
    """Move PACKAGE to CATEGORY."""
    console = ctx.obj["console"]
    config = _config(ctx)

    transport = _transport(ctx)
    try:
        session = _prepare_session(ctx, transport, user, cookie, cookie_jar)
        ids = _resolve_ids(ctx, transport, (package,), by_id)
        if not ids:
            sys.exit(int(ExitCode.FAIL))
        ActionAPIClient(transport, session, config.base_url).change_category(
            ids[0], category_index(category)
        )
        print_message(console, f"{package} moved to {category}")
    finally:
        transport.close()


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
