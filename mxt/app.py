from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from mxt.core.config import load_config
from mxt.core.logging import setup_logging
from mxt.core.constants import APP_NAME, APP_VERSION
from mxt.services.export_service import ExportService
from mxt.services.import_service import ImportService
from mxt.services.persistence import Persistence
from mxt.services.planner import Planner
from mxt.services.rounds import RoundService

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mxt", description=f"{APP_NAME} : placement des participants par manche")
    parser.add_argument("--db", type=Path, help="Fichier SQLite de l'événement (défaut : data/mixtables.db)")
    parser.add_argument("--data-dir", type=Path, help="Dossier des données et des logs")
    parser.add_argument("--seed", type=int, help="Graine du tirage aléatoire")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logs détaillés")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("new", help="Créer un événement avec les tables par défaut")
    p.add_argument("name")

    p = sub.add_parser("add", help="Ajouter des participants (JSON ou un nom par ligne)")
    p.add_argument("file", nargs="?", type=Path, help="Fichier texte (défaut : entrée standard)")

    p = sub.add_parser("import-excel", help="Importer des participants depuis Excel")
    p.add_argument("file", type=Path)

    sub.add_parser("show", help="Afficher les tables et les participants")
    sub.add_parser("tables", help="Afficher l'état des tables")

    p = sub.add_parser("toggle-table", help="Activer / désactiver une table")
    p.add_argument("table_id", type=int)

    p = sub.add_parser("seats", help="Ajouter (+1) ou retirer (-1) des places")
    p.add_argument("table_id", type=int)
    p.add_argument("diff", type=int)

    p = sub.add_parser("korean", help="Basculer le groupe d'un participant")
    p.add_argument("attendee_id")

    sub.add_parser("shuffle", help="Recalculer l'aperçu de la prochaine manche")
    sub.add_parser("start-round", help="Démarrer la manche suivante")
    sub.add_parser("clear", help="Vider la manche en cours")

    p = sub.add_parser("place", help="Placer un participant sur une table au hasard")
    p.add_argument("attendee_id")

    p = sub.add_parser("unseat", help="Retirer un participant de sa table")
    p.add_argument("attendee_id")

    p = sub.add_parser("delete", help="Supprimer un participant")
    p.add_argument("attendee_id")

    sub.add_parser("delete-all", help="Supprimer tous les participants")

    for name, help_text in (
        ("export-excel", "Exporter le plan (Excel)"),
        ("export-badges", "Exporter les badges (PDF)"),
        ("export-template", "Exporter un modèle d'import (Excel)"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("output", type=Path)

    return parser


def _print_tables(rounds: RoundService) -> None:
    summary = rounds.summary()
    for row in summary.tables:
        t = row.table
        if not t.enabled:
            print(f"{t.id} - {t.name} : table désactivée")
            continue
        print(f"{t.id} - {t.name} : places {t.seats} | libres {row.left} | KR {row.korean} | autres {row.non_korean}")
        for name in row.names:
            print(f"    {name}")
    print(
        f"Tables : {summary.total_tables} | Places : {summary.total_seats} | Personnes : {summary.total_people}"
        f" | Placées : {summary.assigned} | En attente : {summary.pending}"
    )


def _print_attendees(rounds: RoundService) -> None:
    for row in rounds.attendee_tables():
        a = row.attendee
        flag = "KR" if a.is_korean else "--"
        current = row.current.id if row.current else "aucune"
        nxt = row.next.id if row.next else "aucune"
        print(f"[{a.id}] {flag} {a.name} : table {current}, prochaine {nxt}")


def run(args: argparse.Namespace, persistence: Persistence) -> int:
    cmd = args.command
    if cmd == "new":
        if args.db.exists():
            raise RuntimeError(f"La base existe déjà : {args.db}")
        persistence.new_event(args.db, args.name)
        print(f"Événement créé : {args.db}")
        return 0

    persistence.open_event(args.db)
    rounds = RoundService(persistence, planner=Planner(seed=args.seed), notify=print)
    importer = ImportService(persistence)
    exporter = ExportService(persistence)

    if cmd == "add":
        text = args.file.read_text(encoding="utf-8") if args.file else sys.stdin.read()
        print(f"{importer.import_from_text(text)} participant(s) ajouté(s).")
    elif cmd == "import-excel":
        print(f"{importer.import_from_excel(args.file)} participant(s) importé(s).")
    elif cmd == "show":
        _print_tables(rounds)
        _print_attendees(rounds)
    elif cmd == "tables":
        _print_tables(rounds)
    elif cmd == "toggle-table":
        table = rounds.toggle_table(args.table_id)
        print(f"Table {table.label()} {'activée' if table.enabled else 'désactivée'}.")
    elif cmd == "seats":
        table = rounds.edit_seats(args.table_id, args.diff)
        print(f"Table {table.label()} : {table.seats} place(s).")
    elif cmd == "korean":
        attendee = rounds.toggle_korean(args.attendee_id)
        print(f"{attendee.name} : {'coréen' if attendee.is_korean else 'non coréen'}.")
    elif cmd == "shuffle":
        rounds.shuffle()
        _print_attendees(rounds)
    elif cmd == "start-round":
        rounds.start_new_round()
        _print_tables(rounds)
    elif cmd == "clear":
        rounds.clear()
        print("Manche en cours vidée.")
    elif cmd == "place":
        placement = rounds.add_to_random_table(args.attendee_id)
        if placement.table is None:
            print("Aucune table disponible.")
    elif cmd == "unseat":
        rounds.remove_from_table(args.attendee_id)
        print("Participant retiré de sa table.")
    elif cmd == "delete":
        rounds.delete_attendee(args.attendee_id)
        print("Participant supprimé.")
    elif cmd == "delete-all":
        rounds.delete_all()
        print("Tous les participants ont été supprimés.")
    elif cmd == "export-excel":
        print(f"Fichier généré : {exporter.export_plan_excel(args.output)}")
    elif cmd == "export-badges":
        print(f"Badges exportés vers {exporter.export_badges_pdf(args.output)}")
    elif cmd == "export-template":
        print(f"Modèle généré : {exporter.export_import_template(args.output)}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    persistence = Persistence()
    try:
        cfg = load_config(args.data_dir)
        setup_logging(cfg.log_dir, logging.DEBUG if args.verbose else logging.INFO)
        log.info("%s %s démarré (%s)", APP_NAME, APP_VERSION, args.command)
        if args.db is None:
            args.db = cfg.db_path
        return run(args, persistence)
    except (RuntimeError, KeyError, ValueError, OSError) as exc:
        # trace complète dans le fichier de log ; en console seulement avec --verbose
        log.info("Commande %s échouée", args.command, exc_info=True)
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
        print(f"Erreur : {message}", file=sys.stderr)
        return 1
    finally:
        persistence.close_event()

if __name__ == "__main__":
    raise SystemExit(main())
