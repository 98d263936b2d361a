"""
db/init_db.py
-------------
Creates the database schema (tables, constraints, triggers) if it does not
already exist. Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import Database
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Reference tables: books point at these through foreign keys
CREATE TABLE IF NOT EXISTS authors (
    author_id       SERIAL PRIMARY KEY,
    name            VARCHAR(100) NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS publishers (
    publisher_id    SERIAL PRIMARY KEY,
    name            VARCHAR(100) NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS categories (
    category_id     SERIAL PRIMARY KEY,
    name            VARCHAR(50) NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Users table: library members and staff
CREATE TABLE IF NOT EXISTS users (
    user_id             SERIAL PRIMARY KEY,
    username            VARCHAR(50) NOT NULL,
    email               VARCHAR(100) NOT NULL,
    full_name           VARCHAR(100) NOT NULL,
    phone               VARCHAR(20),
    role                VARCHAR(20) NOT NULL DEFAULT 'member',
    status              VARCHAR(20) NOT NULL DEFAULT 'active',
    registration_date   TIMESTAMPTZ DEFAULT NOW(),
    last_login          TIMESTAMPTZ,
    created_at          TIMESTAMPTZ DEFAULT NOW(),
    updated_at          TIMESTAMPTZ DEFAULT NOW(),
    CONSTRAINT uq_users_username UNIQUE (username),
    CONSTRAINT uq_users_email UNIQUE (email),
    CONSTRAINT chk_users_role CHECK (role IN ('member', 'librarian', 'admin')),
    CONSTRAINT chk_users_status CHECK (status IN ('active', 'inactive', 'suspended'))
);

-- Books table: catalogue entries with copy counters
CREATE TABLE IF NOT EXISTS books (
    book_id             SERIAL PRIMARY KEY,
    isbn                VARCHAR(20) NOT NULL,
    title               VARCHAR(255) NOT NULL,
    author_id           INT NOT NULL,
    publisher_id        INT,
    category_id         INT,
    publication_year    INT,
    pages               INT,
    language            VARCHAR(30) DEFAULT 'Indonesian',
    description         TEXT,
    total_copies        INT NOT NULL DEFAULT 1,
    available_copies    INT NOT NULL DEFAULT 1,
    price               NUMERIC(12,2),
    location            VARCHAR(50),
    status              VARCHAR(20) NOT NULL DEFAULT 'available',
    created_at          TIMESTAMPTZ DEFAULT NOW(),
    updated_at          TIMESTAMPTZ DEFAULT NOW(),
    CONSTRAINT uq_books_isbn UNIQUE (isbn),
    CONSTRAINT fk_books_author FOREIGN KEY (author_id) REFERENCES authors(author_id),
    CONSTRAINT fk_books_publisher FOREIGN KEY (publisher_id) REFERENCES publishers(publisher_id),
    CONSTRAINT fk_books_category FOREIGN KEY (category_id) REFERENCES categories(category_id),
    CONSTRAINT chk_books_publication_year CHECK (publication_year IS NULL OR publication_year >= 1000),
    CONSTRAINT chk_books_total_copies CHECK (total_copies >= 0),
    CONSTRAINT chk_books_available_copies CHECK (available_copies >= 0 AND available_copies <= total_copies),
    CONSTRAINT chk_books_status CHECK (status IN ('available', 'unavailable', 'maintenance'))
);

-- Borrowings table: one row per loan of one book copy to one user
CREATE TABLE IF NOT EXISTS borrowings (
    borrowing_id    SERIAL PRIMARY KEY,
    user_id         INT NOT NULL,
    book_id         INT NOT NULL,
    borrow_date     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    due_date        TIMESTAMPTZ NOT NULL,
    return_date     TIMESTAMPTZ,
    status          VARCHAR(20) NOT NULL DEFAULT 'borrowed',
    fine_amount     NUMERIC(12,2) NOT NULL DEFAULT 0,
    fine_paid       BOOLEAN NOT NULL DEFAULT FALSE,
    notes           TEXT,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW(),
    CONSTRAINT fk_borrowings_user FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE,
    CONSTRAINT fk_borrowings_book FOREIGN KEY (book_id) REFERENCES books(book_id) ON DELETE RESTRICT,
    CONSTRAINT chk_borrowings_due_date CHECK (due_date > borrow_date),
    CONSTRAINT chk_borrowings_status CHECK (status IN ('borrowed', 'returned', 'overdue', 'lost')),
    CONSTRAINT chk_borrowings_fine_amount CHECK (fine_amount >= 0)
);

-- Keep updated_at current on every row modification
CREATE OR REPLACE FUNCTION set_updated_at() RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS trg_users_updated_at ON users;
CREATE TRIGGER trg_users_updated_at BEFORE UPDATE ON users
    FOR EACH ROW EXECUTE FUNCTION set_updated_at();

DROP TRIGGER IF EXISTS trg_books_updated_at ON books;
CREATE TRIGGER trg_books_updated_at BEFORE UPDATE ON books
    FOR EACH ROW EXECUTE FUNCTION set_updated_at();

DROP TRIGGER IF EXISTS trg_borrowings_updated_at ON borrowings;
CREATE TRIGGER trg_borrowings_updated_at BEFORE UPDATE ON borrowings
    FOR EACH ROW EXECUTE FUNCTION set_updated_at();

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_borrowings_user ON borrowings(user_id);
CREATE INDEX IF NOT EXISTS idx_borrowings_book ON borrowings(book_id);
CREATE INDEX IF NOT EXISTS idx_borrowings_active_due ON borrowings(due_date) WHERE return_date IS NULL;
CREATE INDEX IF NOT EXISTS idx_books_title ON books(LOWER(title));
"""

DROP_SQL = """
DROP TABLE IF EXISTS borrowings, books, users, categories, publishers, authors CASCADE;
DROP FUNCTION IF EXISTS set_updated_at();
"""


def create_tables(db: Database) -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS / OR REPLACE).
    """
    try:
        with db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        logger.error(f"Failed to initialize schema: {e}")
        raise


def drop_tables(db: Database) -> None:
    """Drop every table created by create_tables()."""
    try:
        with db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(DROP_SQL)
        logger.info("Database schema dropped.")
    except Exception as e:
        logger.error(f"Failed to drop schema: {e}")
        raise


def seed_reference_data(db: Database) -> dict:
    """
    Ensure one sample author, publisher and category exist.

    Returns:
        Dict with keys 'author_id', 'publisher_id', 'category_id'.
    """
    seeds = (
        ("authors", "author_id", "Pramoedya Ananta Toer"),
        ("publishers", "publisher_id", "Gramedia Pustaka Utama"),
        ("categories", "category_id", "Fiction"),
    )
    ids = {}
    with db.transaction() as conn:
        with conn.cursor() as cur:
            for table, id_column, name in seeds:
                cur.execute(f"SELECT {id_column} FROM {table} WHERE name = %s;", (name,))
                row = cur.fetchone()
                if row is None:
                    cur.execute(
                        f"INSERT INTO {table} (name) VALUES (%s) RETURNING {id_column};",
                        (name,),
                    )
                    row = cur.fetchone()
                ids[id_column] = row[0]
    logger.info(f"Reference data ready: {ids}")
    return ids


if __name__ == "__main__":
    database = Database()
    database.init_pool()
    create_tables(database)
    seed_reference_data(database)
    database.close_pool()
    print("✅ Database schema created successfully.")
