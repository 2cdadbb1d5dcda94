"""Module executed when running ``python -m kodi2plex``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from .assertions import AssertionFailedError
from .config import ExclusionRules, Settings, get_settings
from .database import Database
from .sequence import ChangedAtSequence
from .services.importer import (
    MOVIE_XPATH,
    TV_XPATH,
    ImportContext,
    Importer,
    ImportSource,
)
from .services.kodi_export import load_export
from .services.store import CatalogStore
from .services.verifier import FolderVerifier

logger = logging.getLogger("kodi2plex")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kodi2plex",
        description="Import Kodi watch history into a Plex library database.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("import", help="merge Kodi play history into Plex")
    run.add_argument("--movies", action="store_true", help="live action movies")
    run.add_argument("--tv", action="store_true", help="live action shows")
    run.add_argument("--anime-movies", action="store_true", help="anime movies")
    run.add_argument("--anime-tv", action="store_true", help="anime shows")
    run.add_argument(
        "--clear",
        action="store_true",
        help="delete existing watch state and history first",
    )
    run.add_argument(
        "--strict",
        action="store_true",
        help="stop at the first failed check instead of collecting them",
    )

    commands.add_parser("verify", help="spot check anime folder matches")
    return parser


def import_sources(settings: Settings, args: argparse.Namespace) -> list[ImportSource]:
    wanted_live_action = args.movies or args.tv
    wanted_anime = args.anime_movies or args.anime_tv
    if not (wanted_live_action or wanted_anime):
        args.movies = args.tv = True
        wanted_live_action = True

    sources: list[ImportSource] = []
    if wanted_live_action:
        if settings.kodi_movies_path is None:
            raise SystemExit("KODI2PLEX_KODI_MOVIES_PATH is not configured")
        live_action = load_export(settings.kodi_movies_path)
        if args.movies:
            sources.append(ImportSource(live_action, MOVIE_XPATH, "live_action", "movie"))
        if args.tv:
            sources.append(ImportSource(live_action, TV_XPATH, "live_action", "tv"))
    if wanted_anime:
        if settings.kodi_anime_path is None:
            raise SystemExit("KODI2PLEX_KODI_ANIME_PATH is not configured")
        anime = load_export(settings.kodi_anime_path)
        if args.anime_movies:
            sources.append(ImportSource(anime, MOVIE_XPATH, "anime", "movie"))
        if args.anime_tv:
            sources.append(ImportSource(anime, TV_XPATH, "anime", "tv"))
    return sources


def run_import(settings: Settings, args: argparse.Namespace) -> int:
    if args.strict:
        settings = settings.model_copy(update={"suppress_errors_till_end": False})
    rules = ExclusionRules.load(settings.exclusions_path)
    sources = import_sources(settings, args)

    database = Database(settings.database_url)
    try:
        with database.session() as session:
            importer = Importer(ImportContext.create(settings, rules, session))
            if args.clear or settings.clear_tables:
                importer.clear_tables()
            report = importer.run(sources)
    except AssertionFailedError as exc:
        logger.error("Import aborted at %s: %s", exc.site, exc.message)
        return 1
    finally:
        database.dispose()

    if not report.ok:
        print(report.format(), file=sys.stderr)
        logger.error("Import ran with %d error(s)", len(report.failures))
        return 1
    return 0


def run_verify(settings: Settings) -> int:
    database = Database(settings.database_url)
    try:
        with database.session() as session:
            store = CatalogStore(
                session,
                ChangedAtSequence(settings.changed_at_seed, settings.changed_at_skip),
            )
            verifier = FolderVerifier(
                store,
                settings.dir_media_path_match,
                settings.plex_media_path_replace,
            )
            failures = verifier.verify_all(settings.folders_to_verify_matches)
    finally:
        database.dispose()

    for failure in failures:
        print(f"{failure.folder}: {failure.message}", file=sys.stderr)
    return 1 if failures else 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run the selected command and return an exit status."""

    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    settings = get_settings()
    if args.command == "verify":
        return run_verify(settings)
    return run_import(settings, args)


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    sys.exit(main())
