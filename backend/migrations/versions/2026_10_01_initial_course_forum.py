from alembic import op
import sqlalchemy as sa

revision = "2026_10_01_initial_course_forum"
down_revision = None  # 初始遷移


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    def safe_create(table_name: str, creator):
        # 已存在（例如先前由 create_all 建立）則略過
        if insp.has_table(table_name):
            return
        creator()

    safe_create("users", lambda: op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("username", sa.String(64), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        _ts("created_at"),
    ))

    safe_create("user_roles", lambda: op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role", sa.String(16), primary_key=True),
    ))

    def _questions():
        op.create_table(
            "questions",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("parent_id", sa.Integer, sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=True, index=True),
            sa.Column("author_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("text", sa.Text, nullable=False),
            sa.Column("resolved", sa.Boolean, nullable=False, server_default=sa.false()),
            _ts("created_at"),
        )
        op.create_index("idx_questions_roots", "questions", ["parent_id", "id"])
    safe_create("questions", _questions)

    safe_create("answers", lambda: op.create_table(
        "answers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("question_id", sa.Integer, sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("author_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("resolves", sa.Boolean, nullable=False, server_default=sa.false()),
        _ts("created_at"),
    ))

    safe_create("reviews", lambda: op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("reviewer_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("question_id", sa.Integer, sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=True, index=True),
        sa.Column("answer_id", sa.Integer, sa.ForeignKey("answers.id", ondelete="CASCADE"), nullable=True, index=True),
        _ts("created_at"),
        sa.CheckConstraint("(question_id IS NULL) <> (answer_id IS NULL)", name="ck_reviews_exactly_one_target"),
    ))

    safe_create("trusted_reviewers", lambda: op.create_table(
        "trusted_reviewers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("trusted_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("weight", sa.Integer, nullable=False, server_default="3"),
        _ts("updated_at"),
        sa.UniqueConstraint("owner_id", "trusted_id", name="uq_trusted_reviewers_pair"),
    ))

    safe_create("reviewer_scorecards", lambda: op.create_table(
        "reviewer_scorecards",
        sa.Column("reviewer_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("review_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("average_rating", sa.Float, nullable=False, server_default="0"),
        sa.Column("helpfulness_score", sa.Float, nullable=False, server_default="0"),
        sa.Column("response_time_hours", sa.Float, nullable=False, server_default="0"),
        sa.Column("trust_score", sa.Float, nullable=False, server_default="0", index=True),
        _ts("last_updated"),
    ))

    def _role_requests():
        op.create_table(
            "role_requests",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("student_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
            sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
            _ts("requested_at"),
            _ts("reviewed_at", nullable=True),
            sa.Column("reviewed_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        )
        # 每位學生最多一筆待審申請
        op.create_index(
            "uq_role_requests_one_pending", "role_requests", ["student_id"], unique=True,
            sqlite_where=sa.text("status = 'PENDING'"),
            postgresql_where=sa.text("status = 'PENDING'"),
        )
    safe_create("role_requests", _role_requests)

    safe_create("admin_requests", lambda: op.create_table(
        "admin_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("instructor_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="OPEN", index=True),
        _ts("created_at"),
        _ts("closed_at", nullable=True),
        sa.Column("closed_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("original_request_id", sa.Integer, sa.ForeignKey("admin_requests.id", ondelete="SET NULL"), nullable=True, index=True),
    ))

    safe_create("moderation_logs", lambda: op.create_table(
        "moderation_logs",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("staff_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content_type", sa.String(16), nullable=False),
        sa.Column("content_id", sa.Integer, nullable=False),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("original_content", sa.Text, nullable=True),
        sa.Column("modified_content", sa.Text, nullable=True),
        _ts("created_at"),
    ))

    safe_create("staff_escalations", lambda: op.create_table(
        "staff_escalations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("staff_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("student_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("issue_type", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("priority", sa.String(16), nullable=False, server_default="MEDIUM"),
        sa.Column("status", sa.String(16), nullable=False, server_default="OPEN", index=True),
        _ts("created_at"),
        _ts("resolved_at", nullable=True),
        sa.Column("resolved_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    ))

    safe_create("staff_discussions", lambda: op.create_table(
        "staff_discussions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("staff_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("is_private", sa.Boolean, nullable=False, server_default=sa.true()),
        _ts("created_at"),
    ))


def downgrade():
    for table in (
        "staff_discussions", "staff_escalations", "moderation_logs", "admin_requests",
        "role_requests", "reviewer_scorecards", "trusted_reviewers", "reviews",
        "answers", "questions", "user_roles", "users",
    ):
        op.drop_table(table)
