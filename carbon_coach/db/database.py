# carbon_coach/db/database.py
from typing import Any, Callable, List, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from carbon_coach.api.v1.schemas.footprint import FootprintInput, FootprintRecord, FootprintResult
import logging

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS footprints (
        id BIGSERIAL PRIMARY KEY,
        owner_id TEXT NOT NULL,
        transport DOUBLE PRECISION NOT NULL,
        energy DOUBLE PRECISION NOT NULL,
        diet DOUBLE PRECISION NOT NULL,
        waste DOUBLE PRECISION NOT NULL,
        total DOUBLE PRECISION NOT NULL,
        client_timestamp TIMESTAMPTZ NOT NULL,
        raw_input JSONB NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS footprints_owner_created_idx ON footprints (owner_id, created_at);
"""

INSERT_SQL = """
    INSERT INTO footprints (
        owner_id, transport, energy, diet, waste, total, client_timestamp, raw_input
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
    RETURNING id, owner_id, transport, energy, diet, waste, total, client_timestamp, raw_input, created_at;
"""

SELECT_BY_OWNER_SQL = """
    SELECT id, owner_id, transport, energy, diet, waste, total, client_timestamp, raw_input, created_at
    FROM footprints
    WHERE owner_id = %s
    ORDER BY created_at ASC, id ASC;
"""


def _mask_dsn(dsn: str) -> str:
    # Oculta la contraseña en el log
    cut = dsn.find("password=")
    return f"{dsn[:cut + 9]}********..." if cut != -1 else dsn.split("@")[-1]


def _row_to_record(row: dict) -> FootprintRecord:
    return FootprintRecord(
        id=row["id"],
        ownerId=row["owner_id"],
        transport=row["transport"],
        energy=row["energy"],
        diet=row["diet"],
        waste=row["waste"],
        total=row["total"],
        timestamp=row["client_timestamp"],
        rawInput=row["raw_input"],
        createdAt=row["created_at"],
    )


class FootprintStore:
    """
    Historial de huellas por usuario, solo-anexar: se insertan registros nuevos,
    nunca se actualizan ni se borran.

    Los errores de conexión o SQL se registran y se devuelven como False/None,
    igual que el resto de la capa de datos.
    """

    def __init__(self, dsn: Optional[str], connect: Callable[..., Any] = psycopg.connect):
        self.dsn = dsn
        self._connect = connect
        if dsn:
            logger.info(f"Footprint store DSN: {_mask_dsn(dsn)}")
        else:
            logger.error("Database DSN could not be built. Check DATABASE_URL or DB_* settings in .env.")

    @property
    def configured(self) -> bool:
        return bool(self.dsn)

    def get_connection(self):
        if not self.dsn:
            logger.error("Database connection attempt failed: DSN is not configured.")
            return None
        try:
            return self._connect(self.dsn, connect_timeout=10, row_factory=dict_row)
        except psycopg.OperationalError as e:
            logger.error(f"OPERATIONAL error connecting to the database: {e}")
            return None
        except Exception as e:
            logger.error(f"GENERAL error connecting to the database: {e}")
            return None

    def ensure_schema(self) -> bool:
        conn = self.get_connection()
        if conn is None:
            return False
        try:
            with conn.cursor() as cur:
                cur.execute(CREATE_TABLE_SQL)
            conn.commit()
            logger.info("Footprints table is ready.")
            return True
        except Exception as e:
            logger.error(f"Error creating footprints table: {e}")
            conn.rollback()
            return False
        finally:
            conn.close()

    def add_footprint(
        self,
        owner_id: str,
        result: FootprintResult,
        raw_input: FootprintInput,
    ) -> Optional[FootprintRecord]:
        """Inserta un registro nuevo. created_at lo asigna la base de datos."""
        conn = self.get_connection()
        if conn is None:
            return None
        try:
            with conn.cursor() as cur:
                cur.execute(INSERT_SQL, (
                    owner_id,
                    result.transport,
                    result.energy,
                    result.diet,
                    result.waste,
                    result.total,
                    result.timestamp,
                    Jsonb(raw_input.model_dump()),
                ))
                row = cur.fetchone()
            conn.commit()
            logger.info(f"Footprint {row['id']} stored for owner {owner_id} (total {result.total:.2f} t).")
            return _row_to_record(row)
        except Exception as e:
            logger.error(f"Error inserting footprint for {owner_id}: {e}")
            conn.rollback()
            return None
        finally:
            conn.close()

    def list_footprints(self, owner_id: str) -> Optional[List[FootprintRecord]]:
        """Historial del usuario, del más antiguo al más reciente."""
        conn = self.get_connection()
        if conn is None:
            return None
        try:
            with conn.cursor() as cur:
                cur.execute(SELECT_BY_OWNER_SQL, (owner_id,))
                rows = cur.fetchall()
            return [_row_to_record(row) for row in rows]
        except Exception as e:
            logger.error(f"Error reading footprints for {owner_id}: {e}")
            return None
        finally:
            conn.close()
