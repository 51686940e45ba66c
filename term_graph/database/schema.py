"""SQLite schema definitions for the term graph."""

TERMS_TABLE = """
CREATE TABLE IF NOT EXISTS terms (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    status TEXT NOT NULL DEFAULT 'draft',
    is_essential INTEGER NOT NULL DEFAULT 0,
    context_id TEXT,
    created_at TEXT DEFAULT (datetime('now'))
);
"""

TERM_RELATIONSHIPS_TABLE = """
CREATE TABLE IF NOT EXISTS term_relationships (
    id TEXT PRIMARY KEY,
    source_term_id TEXT NOT NULL,
    target_term_id TEXT NOT NULL,
    relationship_type TEXT NOT NULL,
    description TEXT,
    created_by TEXT NOT NULL DEFAULT 'system',
    created_at TEXT DEFAULT (datetime('now')),
    updated_at TEXT,
    UNIQUE (source_term_id, target_term_id, relationship_type),
    CHECK (source_term_id != target_term_id),
    FOREIGN KEY (source_term_id) REFERENCES terms(id) ON DELETE CASCADE,
    FOREIGN KEY (target_term_id) REFERENCES terms(id) ON DELETE CASCADE
);
"""

USER_LEARNING_TABLE = """
CREATE TABLE IF NOT EXISTS user_learning (
    user_id TEXT NOT NULL,
    term_id TEXT NOT NULL,
    learned_at TEXT DEFAULT (datetime('now')),
    PRIMARY KEY (user_id, term_id),
    FOREIGN KEY (term_id) REFERENCES terms(id) ON DELETE CASCADE
);
"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_terms_context ON terms(context_id);",
    "CREATE INDEX IF NOT EXISTS idx_terms_essential ON terms(is_essential);",
    "CREATE INDEX IF NOT EXISTS idx_term_relationships_source ON term_relationships(source_term_id);",
    "CREATE INDEX IF NOT EXISTS idx_term_relationships_target ON term_relationships(target_term_id);",
    "CREATE INDEX IF NOT EXISTS idx_term_relationships_type ON term_relationships(relationship_type);",
    "CREATE INDEX IF NOT EXISTS idx_user_learning_user ON user_learning(user_id);",
]


def create_tables(cursor) -> None:
    """Create all tables and indexes."""
    cursor.execute(TERMS_TABLE)
    cursor.execute(TERM_RELATIONSHIPS_TABLE)
    cursor.execute(USER_LEARNING_TABLE)
    for index in INDEXES:
        cursor.execute(index)
