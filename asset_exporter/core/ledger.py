# ==============================================================================
# EXPORT LEDGER MODULE
# ==============================================================================
# SQLite history of export runs. Uses SQLAlchemy ORM for clean data access.
#
# Tables:
#   - export_runs:    One row per ExportDriver run (script, archive, result)
#   - export_records: One row per exported entry (outcome, outputs, MD5)
#
# The ledger is optional (config "ledger_enabled" or CLI --ledger). It makes
# idempotence checkable after the fact: two runs of one script against an
# unchanged archive must record identical digests for every output.
#
# Usage:
#   ledger = ExportLedger("ledger.db")
#   run_id = ledger.start_run("export.txt", "data.grf", "out/")
#   ledger.record(run_id, "data/a.pal", "data/*.pal", "success", [...], digest)
#   ledger.finish_run(run_id, result)
# ==============================================================================

import os
from datetime import datetime, timezone
from typing import Optional, List
from sqlalchemy import create_engine, Column, Integer, String, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from sqlalchemy.pool import StaticPool

# ==============================================================================
# SQLAlchemy Base Class
# ==============================================================================
Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==============================================================================
# EXPORT RUN MODEL
# ==============================================================================
class ExportRun(Base):
    """
    One invocation of the export driver.

    Attributes:
        id (int):             Unique identifier
        script (str):         Script path, or "<patterns>" for CLI patterns
        archive (str):        Archive path(s), ';'-separated
        output_dir (str):     Destination directory
        started_at:           When the run began
        finished_at:          When the run ended (None while running)
        success (bool):       Overall batch result
        aborted (bool):       Whether a fatal script error stopped the run
        exported (int):       Entries exported
        unsupported (int):    Entries skipped as unsupported
        failed (int):         Entries that failed
        misses (int):         Wildcard patterns that matched nothing
    """
    __tablename__ = 'export_runs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    script = Column(String(500), nullable=False)
    archive = Column(Text, nullable=False)
    output_dir = Column(String(500), nullable=False)
    started_at = Column(DateTime, default=_utcnow)
    finished_at = Column(DateTime, nullable=True)
    success = Column(Boolean, default=False)
    aborted = Column(Boolean, default=False)
    exported = Column(Integer, default=0)
    unsupported = Column(Integer, default=0)
    failed = Column(Integer, default=0)
    misses = Column(Integer, default=0)

    records = relationship("ExportRecord", back_populates="run", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ExportRun(id={self.id}, script='{self.script}', success={self.success})>"


# ==============================================================================
# EXPORT RECORD MODEL
# ==============================================================================
class ExportRecord(Base):
    """
    Outcome of exporting one resolved entry.

    Attributes:
        identifier (str): Archive key or logical stem
        pattern (str):    Script pattern that produced the entry
        status (str):     success, unsupported, failed, miss
        outputs (str):    Relative output paths, newline-separated
        digest (str):     MD5 over all bytes written for the entry
        cause (str):      Failure cause (failed entries only)
    """
    __tablename__ = 'export_records'

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(Integer, ForeignKey('export_runs.id'), nullable=False)
    identifier = Column(String(500), nullable=False)
    pattern = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False)
    outputs = Column(Text, nullable=True)
    digest = Column(String(32), nullable=True)
    cause = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow)

    run = relationship("ExportRun", back_populates="records")

    def __repr__(self):
        return f"<ExportRecord(run_id={self.run_id}, identifier='{self.identifier}', status='{self.status}')>"


# ==============================================================================
# LEDGER CLASS
# ==============================================================================
class ExportLedger:
    """
    Database manager for the export history.

    Attributes:
        db_path (str): Path to the SQLite database file
        engine: SQLAlchemy engine instance
        Session: SQLAlchemy session factory
    """

    def __init__(self, db_path: str):
        """
        Open (and create if needed) the ledger database.

        Args:
            db_path: Path to the SQLite file, or ":memory:"
        """
        self.db_path = db_path

        if db_path == ":memory:":
            # One shared connection, or every session sees an empty database
            self.engine = create_engine(
                'sqlite://', echo=False,
                connect_args={"check_same_thread": False}, poolclass=StaticPool,
            )
        else:
            directory = os.path.dirname(os.path.abspath(db_path))
            os.makedirs(directory, exist_ok=True)
            self.engine = create_engine(f'sqlite:///{db_path}', echo=False)

        # Objects stay readable after their session closes
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

        Base.metadata.create_all(self.engine)

    # ==========================================================================
    # RUN OPERATIONS
    # ==========================================================================

    def start_run(self, script: str, archive: str, output_dir: str) -> int:
        """
        Insert a new run row.

        Returns:
            The run ID
        """
        session = self.Session()
        try:
            run = ExportRun(script=script, archive=archive, output_dir=output_dir)
            session.add(run)
            session.commit()
            return run.id
        finally:
            session.close()

    def finish_run(self, run_id: int, result) -> None:
        """
        Store the final BatchResult of a run.

        Args:
            run_id: ID returned by start_run()
            result: BatchResult of the run
        """
        session = self.Session()
        try:
            run = session.get(ExportRun, run_id)
            if run is None:
                raise ValueError(f"Unknown export run: {run_id}")
            run.finished_at = _utcnow()
            run.success = result.success
            run.aborted = result.aborted
            run.exported = result.exported
            run.unsupported = result.unsupported
            run.failed = len(result.failed)
            run.misses = len(result.misses)
            session.commit()
        finally:
            session.close()

    def record(self, run_id: int, identifier: str, pattern: str, status: str,
               outputs: Optional[List[str]] = None, digest: Optional[str] = None,
               cause: Optional[str] = None) -> None:
        """Insert the outcome of one entry."""
        session = self.Session()
        try:
            session.add(ExportRecord(
                run_id=run_id,
                identifier=identifier,
                pattern=pattern,
                status=status,
                outputs="\n".join(outputs or []),
                digest=digest,
                cause=cause,
            ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    def recent_runs(self, limit: int = 20) -> List[ExportRun]:
        """Most recent runs first."""
        session = self.Session()
        try:
            return (session.query(ExportRun)
                    .order_by(ExportRun.id.desc())
                    .limit(limit)
                    .all())
        finally:
            session.close()

    def get_run(self, run_id: int) -> Optional[ExportRun]:
        session = self.Session()
        try:
            return session.get(ExportRun, run_id)
        finally:
            session.close()

    def records_for_run(self, run_id: int) -> List[ExportRecord]:
        """All entry records of one run, in insertion order."""
        session = self.Session()
        try:
            return (session.query(ExportRecord)
                    .filter(ExportRecord.run_id == run_id)
                    .order_by(ExportRecord.id)
                    .all())
        finally:
            session.close()

    def close(self):
        self.engine.dispose()
