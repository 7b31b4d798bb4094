"""
db/init_db.py
-------------
Creates the database schema (tables and unique indexes) if it does not
already exist. Run this module directly to initialize a fresh database:
    python -m db.init_db

Relations carry no ON DELETE CASCADE: dependent rows (profiles, roles)
are removed by the repositories.
"""

from db.connection import get_connection, release_connection
from models.library_card import (
    CARD_NUMBER_CONSTRAINT,
    EMAIL_CONSTRAINT,
    STUDENT_CARD_CONSTRAINT,
)
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = f"""
CREATE EXTENSION IF NOT EXISTS pgcrypto;

-- Accounts
CREATE TABLE IF NOT EXISTS users (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    email           VARCHAR(255) UNIQUE NOT NULL,
    password        TEXT NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS profiles (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID NOT NULL,
    full_name       VARCHAR(200) NOT NULL,
    phone           VARCHAR(30),
    roll_number     VARCHAR(30),
    department      VARCHAR(100),
    student_class   VARCHAR(30),
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS user_roles (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID NOT NULL,
    role            VARCHAR(30) NOT NULL CHECK (role IN ('admin', 'moderator', 'user')),
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Library cards: card_number is unique case-insensitively, and so is the
-- student materialized from an approved card
CREATE TABLE IF NOT EXISTS library_card_applications (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID,
    first_name      VARCHAR(100) NOT NULL,
    last_name       VARCHAR(100) NOT NULL,
    father_name     VARCHAR(100),
    dob             DATE,
    class           VARCHAR(30) NOT NULL,
    field           VARCHAR(50) NOT NULL,
    roll_no         VARCHAR(30) NOT NULL,
    email           VARCHAR(255) NOT NULL,
    phone           VARCHAR(30),
    address_street  TEXT,
    address_city    VARCHAR(100),
    address_state   VARCHAR(100),
    address_zip     VARCHAR(20),
    status          VARCHAR(20) NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'approved', 'rejected')),
    card_number     VARCHAR(60) NOT NULL,
    student_id      VARCHAR(20) NOT NULL,
    issue_date      DATE NOT NULL,
    valid_through   DATE NOT NULL,
    password        TEXT,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS {CARD_NUMBER_CONSTRAINT}
    ON library_card_applications (LOWER(card_number));
CREATE UNIQUE INDEX IF NOT EXISTS {EMAIL_CONSTRAINT}
    ON library_card_applications (email);

CREATE TABLE IF NOT EXISTS students (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID NOT NULL,
    card_id         VARCHAR(60) NOT NULL,
    name            VARCHAR(200) NOT NULL,
    class           VARCHAR(30),
    field           VARCHAR(50),
    roll_no         VARCHAR(30),
    created_at      TIMESTAMPTZ DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS {STUDENT_CARD_CONSTRAINT} ON students (card_id);

CREATE TABLE IF NOT EXISTS non_students (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID,
    name            VARCHAR(200) NOT NULL,
    role            VARCHAR(50) NOT NULL,
    phone           VARCHAR(30),
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Catalogue and borrowing
CREATE TABLE IF NOT EXISTS books (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    book_name       VARCHAR(255) NOT NULL,
    short_intro     TEXT,
    description     TEXT,
    book_image      TEXT,
    total_copies    INT NOT NULL DEFAULT 1,
    available_copies INT NOT NULL DEFAULT 1,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS book_borrows (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID,
    book_id         UUID NOT NULL,
    book_title      VARCHAR(255) NOT NULL,
    borrower_name   VARCHAR(200) NOT NULL,
    borrower_phone  VARCHAR(30),
    borrower_email  VARCHAR(255),
    borrow_date     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    due_date        TIMESTAMPTZ NOT NULL,
    return_date     TIMESTAMPTZ,
    status          VARCHAR(20) NOT NULL DEFAULT 'borrowed',
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS rare_books (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title           VARCHAR(255) NOT NULL,
    description     TEXT,
    category        VARCHAR(100),
    pdf_path        TEXT,
    cover_image     TEXT,
    status          VARCHAR(20) NOT NULL DEFAULT 'active',
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS notes (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title           VARCHAR(255) NOT NULL,
    description     TEXT,
    subject         VARCHAR(100) NOT NULL,
    class           VARCHAR(30) NOT NULL,
    pdf_path        TEXT,
    status          VARCHAR(20) NOT NULL DEFAULT 'active',
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Site content
CREATE TABLE IF NOT EXISTS events (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title           VARCHAR(255) NOT NULL,
    description     TEXT,
    images          TEXT[] DEFAULT '{{}}',
    date            TIMESTAMPTZ,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS notifications (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title           VARCHAR(255) NOT NULL,
    message         TEXT NOT NULL,
    image           TEXT,
    pin             BOOLEAN NOT NULL DEFAULT FALSE,
    status          VARCHAR(20) NOT NULL DEFAULT 'active',
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS blog_posts (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title           VARCHAR(255) NOT NULL,
    slug            VARCHAR(255) UNIQUE NOT NULL,
    short_description TEXT,
    content         TEXT NOT NULL,
    featured_image  TEXT,
    is_pinned       BOOLEAN NOT NULL DEFAULT FALSE,
    status          VARCHAR(20) NOT NULL DEFAULT 'draft',
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS contact_messages (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name            VARCHAR(200) NOT NULL,
    email           VARCHAR(255) NOT NULL,
    subject         VARCHAR(255),
    message         TEXT NOT NULL,
    is_seen         BOOLEAN NOT NULL DEFAULT FALSE,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS donations (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    amount          NUMERIC(12,2) NOT NULL,
    method          VARCHAR(50),
    name            VARCHAR(200),
    email           VARCHAR(255),
    message         TEXT,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Indexes for the common lookups
CREATE INDEX IF NOT EXISTS idx_profiles_user ON profiles(user_id);
CREATE INDEX IF NOT EXISTS idx_user_roles_user ON user_roles(user_id);
CREATE INDEX IF NOT EXISTS idx_book_borrows_user ON book_borrows(user_id);
CREATE INDEX IF NOT EXISTS idx_library_cards_user ON library_card_applications(user_id);
CREATE INDEX IF NOT EXISTS idx_notes_class_subject ON notes(class, subject) WHERE status = 'active';
CREATE INDEX IF NOT EXISTS idx_notifications_active ON notifications(pin, created_at) WHERE status = 'active';
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables and indexes.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    logger.info("Database schema created successfully.")
