from __future__ import annotations


class SeatingError(Exception):
    """Erreur de base du moteur de placement."""


class InvalidPattern(SeatingError, ValueError):
    """Motif de rangées invalide (aucune valeur positive, jeton non numérique…)."""


class SeatNotFound(SeatingError, LookupError):
    """Le siège n'existe pas dans la topologie courante."""

    def __init__(self, seat) -> None:
        super().__init__(f"Siège introuvable : {seat}")
        self.seat = seat


class PersonNotFound(SeatingError, LookupError):
    def __init__(self, person_id: str) -> None:
        super().__init__(f"Personne introuvable : {person_id}")
        self.person_id = person_id


class PersistenceError(SeatingError, RuntimeError):
    """Échec de lecture/écriture du stockage ou de sérialisation."""


class MalformedSnapshot(SeatingError, ValueError):
    """Le contenu importé n'a pas la forme d'une configuration."""
