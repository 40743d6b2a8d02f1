"""
SQLite Word Store — Infrastructure adapter for local persistence.

Implements WordStore with the SQLAlchemy ORM. Each operation opens a short-lived
session, so the store serializes its own writes through the single engine.
"""

import dataclasses
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from sqlalchemy import BigInteger, Integer, String, Text, create_engine, delete, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from lexicard.domain.clock import Clock, date_str, iso_str, now_ms
from lexicard.domain.constants import DATASET_VERSION, DEVICE_LOCAL_SETTINGS
from lexicard.domain.errors import NotFoundError, ValidationError
from lexicard.domain.models import (
    WORD_FIELDS,
    Dataset,
    ReviewEvent,
    SessionEvent,
    StatisticEvent,
    Word,
)
from lexicard.domain.ports import WordStore

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class WordRow(Base):
    __tablename__ = "words"
    # AUTOINCREMENT keeps ids from being reused after deletes.
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    english_term: Mapped[str] = mapped_column(String, nullable=False, index=True)
    translated_term: Mapped[str] = mapped_column(String, nullable=False)
    example: Mapped[str] = mapped_column(Text, default="")
    unit: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[int] = mapped_column(BigInteger, index=True)
    last_reviewed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    next_review_date: Mapped[int] = mapped_column(BigInteger, index=True)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, default=0)
    incorrect_count: Mapped[int] = mapped_column(Integer, default=0)
    difficulty: Mapped[int] = mapped_column(Integer, default=0, index=True)
    streak: Mapped[int] = mapped_column(Integer, default=0)


class SettingRow(Base):
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text)  # JSON


class StatisticRow(Base):
    __tablename__ = "statistics"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    type: Mapped[str] = mapped_column(String)
    date: Mapped[str] = mapped_column(String, index=True)
    timestamp: Mapped[int] = mapped_column(BigInteger)
    payload: Mapped[str] = mapped_column(Text)  # JSON


def _to_word(row: WordRow) -> Word:
    return Word(
        id=row.id,
        english_term=row.english_term,
        translated_term=row.translated_term,
        example=row.example or "",
        unit=row.unit or 0,
        created_at=row.created_at,
        last_reviewed_at=row.last_reviewed_at,
        next_review_date=row.next_review_date,
        review_count=row.review_count,
        correct_count=row.correct_count,
        incorrect_count=row.incorrect_count,
        difficulty=row.difficulty,
        streak=row.streak,
    )


def _to_event(row: StatisticRow) -> StatisticEvent:
    payload = json.loads(row.payload)
    cls = SessionEvent if row.type == "session" else ReviewEvent
    return cls(**payload, date=row.date, timestamp=row.timestamp)


def _normalize_unit(value: Any) -> int:
    try:
        unit = int(value)
    except (TypeError, ValueError):
        return 0
    return unit if unit >= 0 else 0


class SqliteWordStore(WordStore):
    """
    Word Store backed by a SQLite file.

    Pass ``":memory:"`` for a throwaway database (single connection).
    """

    def __init__(self, db_path: Path | str, clock: Clock = now_ms, echo: bool = False):
        self.db_path = db_path
        self._clock = clock
        if str(db_path) == ":memory:":
            from sqlalchemy.pool import StaticPool

            self.engine = create_engine(
                "sqlite://",
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(f"sqlite:///{db_path}", echo=echo)
        Base.metadata.create_all(self.engine)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.debug(f"SqliteWordStore opened at {db_path}")

    # ---------- Words ----------

    async def get(self, word_id: int) -> Word | None:
        with self._sessions() as session:
            row = session.get(WordRow, word_id)
            return _to_word(row) if row else None

    async def get_all(self) -> list[Word]:
        with self._sessions() as session:
            rows = session.scalars(select(WordRow).order_by(WordRow.id)).all()
            return [_to_word(r) for r in rows]

    async def add(self, fields: dict[str, Any]) -> int:
        with self._sessions() as session, session.begin():
            row = self._new_row(fields, self._clock())
            session.add(row)
            session.flush()
            word_id = row.id
        logger.debug(f"[store] added word id={word_id} term={fields.get('english_term')!r}")
        return word_id

    async def update(self, word_id: int, fields: dict[str, Any]) -> Word:
        unknown = set(fields) - set(WORD_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown word fields: {', '.join(sorted(unknown))}")

        with self._sessions() as session, session.begin():
            row = session.get(WordRow, word_id)
            if row is None:
                raise NotFoundError(f"Word not found: {word_id}")
            for name, value in fields.items():
                if name == "unit":
                    value = _normalize_unit(value)
                setattr(row, name, value)
            session.flush()
            return _to_word(row)

    async def delete(self, word_id: int) -> None:
        with self._sessions() as session, session.begin():
            row = session.get(WordRow, word_id)
            if row is None:
                raise NotFoundError(f"Word not found: {word_id}")
            session.delete(row)
        logger.debug(f"[store] deleted word id={word_id}")

    async def search(self, query: str) -> list[Word]:
        needle = query.lower()
        return [
            w
            for w in await self.get_all()
            if needle in w.english_term.lower() or query in w.translated_term
        ]

    async def get_due_for_review(self, limit: int) -> list[Word]:
        now = self._clock()
        stmt = (
            select(WordRow)
            .where(WordRow.next_review_date <= now)
            .order_by(WordRow.next_review_date, WordRow.id)
            .limit(limit)
        )
        with self._sessions() as session:
            return [_to_word(r) for r in session.scalars(stmt).all()]

    async def get_never_reviewed(
        self, limit: int, exclude_ids: Iterable[int] = ()
    ) -> list[Word]:
        stmt = select(WordRow).where(WordRow.review_count == 0)
        excluded = list(exclude_ids)
        if excluded:
            stmt = stmt.where(WordRow.id.not_in(excluded))
        stmt = stmt.order_by(WordRow.id).limit(limit)
        with self._sessions() as session:
            return [_to_word(r) for r in session.scalars(stmt).all()]

    async def get_words_by_unit(self, unit: int) -> list[Word]:
        stmt = select(WordRow).where(WordRow.unit == unit).order_by(WordRow.id)
        with self._sessions() as session:
            return [_to_word(r) for r in session.scalars(stmt).all()]

    async def get_all_units(self) -> list[int]:
        stmt = select(WordRow.unit).distinct().order_by(WordRow.unit)
        with self._sessions() as session:
            return [u for u in session.scalars(stmt).all()]

    # ---------- Settings ----------

    async def get_setting(self, key: str, default: Any = None) -> Any:
        with self._sessions() as session:
            row = session.get(SettingRow, key)
            return json.loads(row.value) if row else default

    async def set_setting(self, key: str, value: Any) -> None:
        with self._sessions() as session, session.begin():
            session.merge(SettingRow(key=key, value=json.dumps(value)))

    async def get_all_settings(self) -> dict[str, Any]:
        with self._sessions() as session:
            rows = session.scalars(select(SettingRow)).all()
            return {r.key: json.loads(r.value) for r in rows}

    # ---------- Statistics ----------

    async def append_statistic(self, event: StatisticEvent) -> StatisticEvent:
        now = self._clock()
        stamped = dataclasses.replace(event, date=date_str(now), timestamp=now)
        payload = {
            k: v
            for k, v in dataclasses.asdict(stamped).items()
            if k not in ("type", "date", "timestamp")
        }
        with self._sessions() as session, session.begin():
            session.add(
                StatisticRow(
                    type=stamped.type,
                    date=stamped.date,
                    timestamp=stamped.timestamp,
                    payload=json.dumps(payload),
                )
            )
        return stamped

    async def get_statistics_by_date(
        self, start: str, end: str | None = None
    ) -> list[StatisticEvent]:
        stmt = (
            select(StatisticRow)
            .where(StatisticRow.date >= start, StatisticRow.date <= (end or start))
            .order_by(StatisticRow.timestamp, StatisticRow.id)
        )
        with self._sessions() as session:
            return [_to_event(r) for r in session.scalars(stmt).all()]

    async def get_statistic_dates(self) -> list[str]:
        stmt = select(StatisticRow.date).distinct().order_by(StatisticRow.date.desc())
        with self._sessions() as session:
            return list(session.scalars(stmt).all())

    # ---------- Snapshots ----------

    async def export_snapshot(self) -> Dataset:
        settings = {
            k: v
            for k, v in (await self.get_all_settings()).items()
            if k not in DEVICE_LOCAL_SETTINGS
        }
        return Dataset(
            version=DATASET_VERSION,
            export_date=iso_str(self._clock()),
            words=await self.get_all(),
            settings=settings,
        )

    async def import_snapshot(self, dataset: Dataset) -> int:
        now = self._clock()
        # Build every row first so a bad word leaves the store untouched.
        rows = [self._new_row(dataclasses.asdict(w), now) for w in dataset.words]

        with self._sessions() as session, session.begin():
            kept = {
                r.key: r.value
                for r in session.scalars(select(SettingRow)).all()
                if r.key in DEVICE_LOCAL_SETTINGS
            }
            self._clear(session)
            session.add_all(rows)
            for key, value in dataset.settings.items():
                if key not in DEVICE_LOCAL_SETTINGS:
                    session.add(SettingRow(key=key, value=json.dumps(value)))
            for key, raw in kept.items():
                session.add(SettingRow(key=key, value=raw))

        logger.info(f"[store] imported snapshot with {len(rows)} words")
        return len(rows)

    async def clear_all(self) -> None:
        with self._sessions() as session, session.begin():
            self._clear(session)

    async def close(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _clear(session: Session) -> None:
        session.execute(delete(WordRow))
        session.execute(delete(SettingRow))
        session.execute(delete(StatisticRow))

    @staticmethod
    def _new_row(fields: dict[str, Any], now: int) -> WordRow:
        english = (fields.get("english_term") or "").strip()
        translated = (fields.get("translated_term") or "").strip()
        if not english or not translated:
            raise ValidationError(f"Missing required fields: {fields!r}")

        created_at = fields.get("created_at") or now
        return WordRow(
            english_term=english,
            translated_term=translated,
            example=(fields.get("example") or "").strip(),
            unit=_normalize_unit(fields.get("unit", 0)),
            created_at=created_at,
            last_reviewed_at=fields.get("last_reviewed_at"),
            next_review_date=fields.get("next_review_date") or created_at,
            review_count=fields.get("review_count") or 0,
            correct_count=fields.get("correct_count") or 0,
            incorrect_count=fields.get("incorrect_count") or 0,
            difficulty=fields.get("difficulty") or 0,
            streak=fields.get("streak") or 0,
        )
