"""REPL for the coLoc CLI."""

import random

import httpx

from coloc_cli.client import ApiClient
from coloc_cli.mirror import GameClient
from engine.kernel.catalog import Catalog
from engine.kernel.types import GAME_MODES, SELECTION_PHASES, assigned_experiment, now_ms


class Repl:
    """Interactive REPL driving one GameClient."""

    def __init__(self, client: GameClient, catalog: Catalog, api: ApiClient | None = None):
        self.client = client
        self.catalog = catalog
        self.api = api
        self.running = True

    def start(self):
        """Start the REPL."""
        mode = "online" if self.client.connected else "offline"
        print(f"coloc > {mode}. /help for commands.")

        while self.running:
            try:
                line = input(self._prompt()).strip()

                if not line:
                    continue

                if line.startswith("/"):
                    self.handle_command(line)
                else:
                    print("  Commands start with /. Type /help.")

            except (EOFError, KeyboardInterrupt):
                print()
                break
            except httpx.HTTPStatusError as e:
                print(f"  Server error {e.response.status_code}; nothing changed.")
            except Exception as e:
                print(f"Error: {e}")

        if self.api:
            self.api.close()

    def _prompt(self) -> str:
        session = self.client.current_session()
        if session is None:
            return "coloc > "
        return f"coloc [{self.client.role} {session['currentPhase']}] > "

    def handle_command(self, line: str):
        """Handle REPL commands."""
        parts = line.split()
        cmd = parts[0].lower()
        args = parts[1:]

        if cmd == "/quit":
            self.running = False
            print("Goodbye.")
        elif cmd == "/help":
            self._show_help()
        elif cmd == "/create":
            self._create(args)
        elif cmd == "/join":
            if len(args) >= 2:
                self._join(args[0], " ".join(args[1:]))
            else:
                print("Usage: /join <session-code> <team name>")
        elif cmd == "/gm":
            if args:
                self._join_as_gm(args[0])
            else:
                print("Usage: /gm <gm-code>")
        elif cmd == "/advance":
            self.client.advance_phase()
            self._show_session()
        elif cmd == "/back":
            self.client.previous_phase()
            self._show_session()
        elif cmd == "/timer":
            self._adjust_timer(args)
        elif cmd == "/show-timer":
            if args and args[0].lower() in ["on", "off"]:
                self.client.set_show_timer_to_participants(args[0].lower() == "on")
            else:
                print("Usage: /show-timer on|off")
        elif cmd == "/roll":
            self._roll(args)
        elif cmd in ("/select", "/deselect"):
            self._select(cmd, args)
        elif cmd in ("/concern", "/detail"):
            self._review(cmd, args)
        elif cmd in ("/give", "/take"):
            self._gm_card(cmd, args)
        elif cmd == "/state":
            self.client.sync()
            self._show_session()
            self._show_teams()
        else:
            print(f"Unknown command: {cmd}")
            print("Type /help for available commands.")

    # ── Commands ─────────────────────────────────────────────────────────

    def _create(self, args: list[str]):
        settings = {}
        for arg in args:
            key, _, value = arg.partition("=")
            if not value:
                print("Usage: /create [numTeams=4] [acquisitionTime=10] [analysisTime=10] [gameMode=budget]")
                return
            settings[key] = value if key == "gameMode" else float(value) if "." in value else int(value)

        if settings.get("gameMode", "time-attack") not in GAME_MODES:
            print(f"  gameMode must be one of: {', '.join(GAME_MODES)}")
            return

        session = self.client.create_session(settings)
        if session is None:
            print("  Could not create session. Check the settings.")
            return
        print(f"  Session code: {session['sessionCode']}  (share with teams)")
        print(f"  GM code:      {session['gmCode']}  (keep private)")

    def _join(self, code: str, name: str):
        team = self.client.join_session_as_team(code, name)
        if team is None:
            print(f"  No session with code {code}.")
            return
        print(f"  Joined as {team['name']}.")

    def _join_as_gm(self, gm_code: str):
        session = self.client.join_session_as_gm(gm_code)
        if session is None:
            print(f"  No session with GM code {gm_code}.")
            return
        print(f"  GM for session {session['sessionCode']}.")

    def _adjust_timer(self, args: list[str]):
        try:
            delta = float(args[0])
        except (IndexError, ValueError):
            print("Usage: /timer <+/-minutes>")
            return
        self.client.adjust_phase_timer(delta)
        self._show_session()

    def _roll(self, args: list[str]):
        if len(args) == 2:
            d1, d2 = int(args[0]), int(args[1])
        else:
            d1, d2 = random.randint(1, 6), random.randint(1, 6)
        if self.client.current_team() is None:
            print("  Join a team first.")
            return
        self.client.roll_experiment(d1, d2)
        team = self.client.current_team()
        experiment = self.catalog.experiment(team["experiment"]["number"])
        kind = "live" if team["experiment"]["isLive"] else "fixed"
        title = experiment.title if experiment else "unassigned"
        print(f"  Rolled {d1} and {d2}: experiment {team['experiment']['number']} ({kind}) {title}")

    def _select(self, cmd: str, args: list[str]):
        if len(args) != 2 or args[0] not in SELECTION_PHASES:
            print(f"Usage: {cmd} acquisition|analysis|details <card-id>")
            return
        phase, card_id = args
        if cmd == "/select":
            card = self._card(card_id)
            if card is None:
                return
            self.client.select_card(phase, card)
            team = self.client.current_team()
            if team is not None and not any(c["id"] == card_id for c in team["selectedCards"][phase]):
                print(f"  {card_id} was not added (incompatible or missing a requirement).")
        else:
            self.client.deselect_card(phase, card_id)
        self._show_team(self.client.current_team())

    def _review(self, cmd: str, args: list[str]):
        if len(args) != 3 or args[0] not in ("add", "remove"):
            print(f"Usage: {cmd} add|remove <team> <card-id>")
            return
        op, team_ref, card_id = args
        team = self._team(team_ref)
        if team is None:
            return
        if op == "add":
            card = self._card(card_id)
            if card is None:
                return
            if cmd == "/concern":
                self.client.assign_reviewer_concern(team["id"], card)
            else:
                self.client.assign_reviewer_detail(team["id"], card)
        elif cmd == "/concern":
            self.client.unassign_reviewer_concern(team["id"], card_id)
        else:
            self.client.unassign_reviewer_detail(team["id"], card_id)
        self._show_team(self.client.store.team(team["id"]))

    def _gm_card(self, cmd: str, args: list[str]):
        if len(args) != 3 or args[1] not in SELECTION_PHASES:
            print(f"Usage: {cmd} <team> acquisition|analysis|details <card-id>")
            return
        team_ref, phase, card_id = args
        team = self._team(team_ref)
        if team is None:
            return
        if cmd == "/give":
            card = self._card(card_id)
            if card is None:
                return
            self.client.gm_add_card_to_team(team["id"], phase, card)
        else:
            self.client.gm_remove_card_from_team(team["id"], phase, card_id)
        self._show_team(self.client.store.team(team["id"]))

    # ── Lookups ──────────────────────────────────────────────────────────

    def _card(self, card_id: str) -> dict | None:
        card = self.catalog.card(card_id)
        if card is None:
            print(f"  Unknown card: {card_id}")
            return None
        return card.to_dict()

    def _team(self, ref: str) -> dict | None:
        """Find a team of the current session by id or (case-insensitive) name."""
        for team in self.client.teams_in_session():
            if team["id"] == ref or team["name"].lower() == ref.lower():
                return team
        print(f"  No team {ref} in this session.")
        return None

    # ── Rendering ────────────────────────────────────────────────────────

    def _show_session(self):
        session = self.client.current_session()
        if session is None:
            print("  No current session.")
            return
        line = f"  Phase: {session['currentPhase']}"
        if session["phaseEndTime"] is not None:
            remaining = max(0, session["phaseEndTime"] - now_ms()) // 1000
            line += f"  ({remaining // 60}:{remaining % 60:02d} left)"
        print(line)

    def _show_teams(self):
        for team in self.client.teams_in_session():
            self._show_team(team)

    def _show_team(self, team: dict | None):
        if team is None:
            print("  No current team.")
            return
        number = assigned_experiment(team)
        experiment = f"experiment {number}" if number is not None else "no experiment"
        print(f"  {team['name']}: {experiment}, time cost {team['totalTimeCost']}")
        for phase in SELECTION_PHASES:
            ids = [c["id"] for c in team["selectedCards"][phase]]
            if ids:
                print(f"    {phase}: {', '.join(ids)}")
        review = team["reviewOutcome"]
        for key in ("assignedConcerns", "assignedDetails"):
            ids = [c["id"] for c in review.get(key, [])]
            if ids:
                print(f"    {key}: {', '.join(ids)}")

    def _show_help(self):
        """Show help message."""
        print("""
  REPL Commands:
    /create [key=value ...]            - Create a session and become its GM
    /join <code> <team name>           - Join a session as a team
    /gm <gm-code>                      - Become GM of an existing session
    /advance, /back                    - Move the session to the next/previous phase
    /timer <+/-minutes>                - Extend or shorten the phase timer
    /show-timer on|off                 - Show or hide the timer to teams
    /roll [d1 d2]                      - Roll for the team's experiment
    /select <phase> <card-id>          - Add a card to the team's plan
    /deselect <phase> <card-id>        - Remove a card from the team's plan
    /concern add|remove <team> <card>  - Assign a reviewer concern (GM)
    /detail add|remove <team> <card>   - Assign a reviewer detail (GM)
    /give <team> <phase> <card-id>     - Add a card to a team, skipping checks (GM)
    /take <team> <phase> <card-id>     - Remove a card from a team (GM)
    /state                             - Show session and teams
    /help                              - Show this help
    /quit                              - Exit REPL
""")
