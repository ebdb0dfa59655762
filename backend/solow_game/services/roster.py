"""Class list and team registrations.

The class list is a plain text file, one student per line; blank lines are
skipped. Teams live only in memory, like the rest of the session.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from solow_game.errors import InvalidInput, InternalFailure

logger = logging.getLogger(__name__)


@dataclass
class Team:
    name: str
    students: List[str] = field(default_factory=list)

    def to_dict(self):
        return {'teamName': self.name, 'students': list(self.students)}


class StudentRoster:

    def __init__(self, path: Optional[str] = None, students: Optional[List[str]] = None):
        self.path = path
        self._students: List[str] = list(students) if students else []
        self._teams: Dict[str, Team] = {}
        self._lock = threading.Lock()

    def students(self) -> List[str]:
        with self._lock:
            if not self._students:
                self._students = self._load()
            return list(self._students)

    def _load(self) -> List[str]:
        if not self.path:
            return []
        try:
            with open(self.path, encoding='utf-8') as fh:
                names = [line.strip() for line in fh]
        except OSError as e:
            logger.error(f"[roster-load] path={self.path} error={e}")
            raise InternalFailure('Student list is unavailable') from e
        names = [n for n in names if n]
        logger.info(f"[roster-load] path={self.path} students={len(names)}")
        return names

    def teams(self) -> List[Team]:
        with self._lock:
            return list(self._teams.values())

    def validate_team(self, team_name, students) -> Team:
        """Check a registration without storing it."""
        if not isinstance(team_name, str) or not team_name.strip():
            raise InvalidInput('Invalid team name')
        if not isinstance(students, list) or not students or \
                not all(isinstance(s, str) for s in students):
            raise InvalidInput('Invalid team registration data')
        name = team_name.strip()
        known = set(self.students())
        with self._lock:
            if name in self._teams:
                raise InvalidInput('Team name already taken')
            unknown = [s for s in students if s not in known]
            if unknown:
                raise InvalidInput(f"Invalid student names: {', '.join(unknown)}")
            taken = []
            for student in students:
                for team in self._teams.values():
                    if student in team.students:
                        taken.append(f"{student} (in team {team.name})")
            if taken:
                raise InvalidInput(f"The following students are already in teams: {', '.join(taken)}")
        return Team(name=name, students=list(dict.fromkeys(students)))

    def add_team(self, team: Team) -> None:
        with self._lock:
            self._teams[team.name] = team
        logger.info(f"[team-registered] team={team.name} students={len(team.students)}")

    def clear_teams(self) -> None:
        with self._lock:
            self._teams.clear()

    def student_list(self) -> dict:
        all_students = self.students()
        team_info = {}
        for team in self.teams():
            for student in team.students:
                team_info[student] = team.name
        return {
            'allStudents': all_students,
            'studentsInTeams': list(team_info),
            'teamInfo': team_info,
            'unavailableCount': len(team_info),
        }
