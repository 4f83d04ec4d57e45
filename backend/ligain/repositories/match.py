from dataclasses import replace
from typing import Dict, List

from flask import current_app

from ligain import db
from ligain.models import MatchRecord
from ligain.services.games.entities import Match, MatchStatus, as_utc

from .base import CachedRepository, store_call, upsert

_MATCH_UPDATE_COLUMNS = (
    'home_team_score', 'away_team_score', 'match_date', 'match_status',
    'home_win_odds', 'away_win_odds', 'draw_odds',
)


def match_from_columns(match_id, home_team_id, away_team_id, season_code, competition_code, match_date,
                       matchday, match_status, home_team_score=None, away_team_score=None,
                       home_win_odds=None, away_win_odds=None, draw_odds=None) -> Match:
    """Build a Match from raw columns.

    A row marked finished without both scores is kept as started rather than
    trusted as a result.
    """
    match = Match(
        home_team=home_team_id,
        away_team=away_team_id,
        season_code=season_code,
        competition_code=competition_code,
        date=as_utc(match_date),
        matchday=matchday or 0,
        home_team_odds=home_win_odds,
        away_team_odds=away_win_odds,
        draw_odds=draw_odds,
        local_id=match_id,
    )
    if match_status == MatchStatus.FINISHED.value:
        if home_team_score is not None and away_team_score is not None:
            match.finish(home_team_score, away_team_score)
        else:
            match.start()
    elif match_status == MatchStatus.STARTED.value:
        match.start()
    return match


def match_from_record(record: MatchRecord) -> Match:
    return match_from_columns(
        record.id, record.home_team_id, record.away_team_id, record.season_code, record.competition_code,
        record.match_date, record.matchday, record.match_status, record.home_team_score,
        record.away_team_score, record.home_win_odds, record.away_win_odds, record.draw_odds,
    )


class MatchRepository(CachedRepository):

    def save_match(self, match: Match) -> None:
        """Insert or update *match*, keyed by its stable local id."""
        values = {
            'id': match.id,
            'home_team_id': match.home_team,
            'away_team_id': match.away_team,
            'home_team_score': match.home_goals,
            'away_team_score': match.away_goals,
            'match_date': as_utc(match.date),
            'match_status': match.status.value,
            'season_code': match.season_code,
            'competition_code': match.competition_code,
            'matchday': match.matchday,
            'home_win_odds': match.home_team_odds,
            'away_win_odds': match.away_team_odds,
            'draw_odds': match.draw_odds,
        }
        with store_call(f'save match {match.id}'):
            upsert(MatchRecord, values, ['id'], _MATCH_UPDATE_COLUMNS)
            db.session.commit()
        current_app.logger.info(f"[match-save] match={match.id} status={match.status.value}")
        self._cache_set(match.id, replace(match))

    def get_match(self, match_id: str) -> Match:
        match, found = self._cache_get(match_id)
        if found:
            return replace(match)
        with store_call(f'get match {match_id}'):
            record = MatchRecord.query.filter_by(id=match_id).one()
        match = match_from_record(record)
        self._cache_set(match.id, replace(match))
        return match

    def get_matches(self) -> Dict[str, Match]:
        with store_call('get matches'):
            records = MatchRecord.query.all()
        matches = {}
        for record in records:
            match = match_from_record(record)
            matches[match.id] = match
            self._cache_set(match.id, replace(match))
        return matches

    def get_matches_by_competition_and_season(self, competition_code: str, season_code: str) -> List[Match]:
        with store_call(f'get matches of {competition_code} {season_code}'):
            records = (MatchRecord.query
                       .filter_by(competition_code=competition_code, season_code=season_code)
                       .order_by(MatchRecord.matchday, MatchRecord.match_date)
                       .all())
        matches = [match_from_record(r) for r in records]
        for match in matches:
            self._cache_set(match.id, replace(match))
        return matches
