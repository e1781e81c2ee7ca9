"""0001 – Initial schema: tenants, auth, HR, payroll, forms, files, OTP, audit.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("company_status", ["PENDING_VERIFICATION", "ACTIVE", "SUSPENDED", "INACTIVE"]),
    ("employee_status", ["ACTIVE", "ON_LEAVE", "TERMINATED", "SUSPENDED"]),
    ("form_status", ["draft", "published", "archived"]),
    ("integration_status", ["active", "inactive"]),
    ("leave_status", ["PENDING", "APPROVED", "REJECTED"]),
    ("notification_type", ["info", "success", "warning", "error"]),
    ("pay_frequency", ["WEEKLY", "BIWEEKLY", "MONTHLY"]),
    ("payroll_status", ["DRAFT", "PROCESSED", "APPROVED", "PAID"]),
    ("otp_type", ["COMPANY_REGISTRATION", "USER_LOGIN"]),
    ("otp_status", ["PENDING", "VERIFIED", "EXPIRED", "FAILED", "CANCELLED"]),
    ("log_level", ["debug", "info", "warn", "error"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. companies ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE companies (
            id           UUID PRIMARY KEY,
            name         VARCHAR(200) NOT NULL,
            identifier   VARCHAR(50)  NOT NULL UNIQUE,
            full_name    VARCHAR(300),
            short_name   VARCHAR(50),
            country_code VARCHAR(2),
            phone_number VARCHAR(20) UNIQUE,
            work_phone   VARCHAR(20),
            email        VARCHAR(255),
            city         VARCHAR(100),
            address      JSONB,
            settings     JSONB NOT NULL DEFAULT '{}'::jsonb,
            status       company_status NOT NULL DEFAULT 'ACTIVE',
            is_active    BOOLEAN NOT NULL DEFAULT TRUE,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # ── 2. roles ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE roles (
            id          UUID PRIMARY KEY,
            company_id  UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            name        VARCHAR(100) NOT NULL,
            description TEXT,
            permissions JSONB NOT NULL DEFAULT '[]'::jsonb,
            is_active   BOOLEAN NOT NULL DEFAULT TRUE,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_roles_company_name UNIQUE (company_id, name)
        )
    """)
    op.execute("CREATE INDEX ix_roles_company_id ON roles(company_id)")

    # ── 3. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id             UUID PRIMARY KEY,
            company_id     UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            role_id        UUID REFERENCES roles(id) ON DELETE SET NULL,
            username       VARCHAR(100) NOT NULL UNIQUE,
            email          VARCHAR(255) NOT NULL UNIQUE,
            first_name     VARCHAR(100) NOT NULL,
            last_name      VARCHAR(100) NOT NULL,
            phone_number   VARCHAR(20),
            avatar         VARCHAR(500),
            password_hash  VARCHAR(255) NOT NULL,
            is_active      BOOLEAN NOT NULL DEFAULT TRUE,
            email_verified BOOLEAN NOT NULL DEFAULT FALSE,
            phone_verified BOOLEAN NOT NULL DEFAULT FALSE,
            last_login_at  TIMESTAMPTZ,
            failed_login_attempts INTEGER NOT NULL DEFAULT 0,
            locked_until   TIMESTAMPTZ,
            token_version  INTEGER NOT NULL DEFAULT 0,
            created_at     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at     TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_users_company_id   ON users(company_id)")
    op.execute("CREATE INDEX ix_users_role_id      ON users(role_id)")
    op.execute("CREATE INDEX ix_users_phone_number ON users(phone_number)")

    # ── 4. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id                UUID PRIMARY KEY,
            company_id        UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            user_id           UUID REFERENCES users(id) ON DELETE SET NULL,
            employee_code     VARCHAR(50)  NOT NULL,
            first_name        VARCHAR(100) NOT NULL,
            last_name         VARCHAR(100) NOT NULL,
            email             VARCHAR(255) NOT NULL,
            phone_number      VARCHAR(20),
            department        VARCHAR(100),
            position          VARCHAR(100),
            status            employee_status NOT NULL DEFAULT 'ACTIVE',
            hire_date         DATE NOT NULL,
            termination_date  DATE,
            salary            NUMERIC(12, 2),
            manager_id        UUID REFERENCES employees(id) ON DELETE SET NULL,
            emergency_contact JSONB,
            address           JSONB,
            bank_details      JSONB,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_employees_company_code  UNIQUE (company_id, employee_code),
            CONSTRAINT uq_employees_company_email UNIQUE (company_id, email)
        )
    """)
    op.execute("CREATE INDEX ix_employees_company_id ON employees(company_id)")
    op.execute("CREATE INDEX ix_employees_department ON employees(department)")
    op.execute("CREATE INDEX ix_employees_manager_id ON employees(manager_id)")

    # ── 5. forms / form_fields / form_submissions ─────────────────────────
    op.execute("""
        CREATE TABLE forms (
            id          UUID PRIMARY KEY,
            company_id  UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            title       VARCHAR(200) NOT NULL,
            description TEXT,
            category    VARCHAR(100),
            status      form_status NOT NULL DEFAULT 'draft',
            settings    JSONB NOT NULL DEFAULT '{}'::jsonb,
            created_by  UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_forms_company_id ON forms(company_id)")

    op.execute("""
        CREATE TABLE form_fields (
            id         UUID PRIMARY KEY,
            form_id    UUID NOT NULL REFERENCES forms(id) ON DELETE CASCADE,
            name       VARCHAR(100) NOT NULL,
            label      VARCHAR(200) NOT NULL,
            type       VARCHAR(50)  NOT NULL,
            required   BOOLEAN NOT NULL DEFAULT FALSE,
            options    JSONB,
            validation JSONB,
            "order"    INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_form_fields_form_id ON form_fields(form_id)")

    op.execute("""
        CREATE TABLE form_submissions (
            id           UUID PRIMARY KEY,
            company_id   UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            form_id      UUID NOT NULL REFERENCES forms(id) ON DELETE CASCADE,
            submitted_by UUID REFERENCES users(id) ON DELETE SET NULL,
            data         JSONB NOT NULL,
            submitted_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_form_submissions_company_id ON form_submissions(company_id)")
    op.execute("CREATE INDEX ix_form_submissions_form_id    ON form_submissions(form_id)")

    # ── 6. integrations / integration_logs ────────────────────────────────
    op.execute("""
        CREATE TABLE integrations (
            id         UUID PRIMARY KEY,
            company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            name       VARCHAR(100) NOT NULL,
            type       VARCHAR(50)  NOT NULL,
            config     JSONB NOT NULL DEFAULT '{}'::jsonb,
            status     integration_status NOT NULL DEFAULT 'active',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_integrations_company_name UNIQUE (company_id, name)
        )
    """)
    op.execute("CREATE INDEX ix_integrations_company_id ON integrations(company_id)")

    op.execute("""
        CREATE TABLE integration_logs (
            id             UUID PRIMARY KEY,
            integration_id UUID NOT NULL REFERENCES integrations(id) ON DELETE CASCADE,
            status         VARCHAR(20) NOT NULL,
            message        TEXT,
            payload        JSONB,
            created_at     TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_integration_logs_integration_id ON integration_logs(integration_id)"
    )

    # ── 7. leave_types / leave_balances / leave_requests ──────────────────
    op.execute("""
        CREATE TABLE leave_types (
            id           UUID PRIMARY KEY,
            company_id   UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            name         VARCHAR(100) NOT NULL,
            description  TEXT,
            default_days INTEGER NOT NULL DEFAULT 0,
            is_paid      BOOLEAN NOT NULL DEFAULT TRUE,
            is_active    BOOLEAN NOT NULL DEFAULT TRUE,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leave_types_company_name UNIQUE (company_id, name)
        )
    """)
    op.execute("CREATE INDEX ix_leave_types_company_id ON leave_types(company_id)")

    op.execute("""
        CREATE TABLE leave_balances (
            id             UUID PRIMARY KEY,
            company_id     UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            employee_id    UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            type_id        UUID NOT NULL REFERENCES leave_types(id) ON DELETE CASCADE,
            total_days     INTEGER NOT NULL DEFAULT 0,
            used_days      INTEGER NOT NULL DEFAULT 0,
            remaining_days INTEGER NOT NULL DEFAULT 0,
            created_at     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leave_balance UNIQUE (employee_id, type_id),
            CONSTRAINT ck_leave_balance_remaining CHECK (remaining_days >= 0)
        )
    """)
    op.execute("CREATE INDEX ix_leave_balances_company_id  ON leave_balances(company_id)")
    op.execute("CREATE INDEX ix_leave_balances_employee_id ON leave_balances(employee_id)")

    op.execute("""
        CREATE TABLE leave_requests (
            id          UUID PRIMARY KEY,
            company_id  UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            employee_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            type_id     UUID NOT NULL REFERENCES leave_types(id),
            start_date  DATE NOT NULL,
            end_date    DATE NOT NULL,
            days        INTEGER NOT NULL,
            notes       TEXT,
            status      leave_status NOT NULL DEFAULT 'PENDING',
            approved_by UUID REFERENCES users(id) ON DELETE SET NULL,
            comments    TEXT,
            approved_at TIMESTAMPTZ,
            rejected_at TIMESTAMPTZ,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_leave_requests_company_id  ON leave_requests(company_id)")
    op.execute("CREATE INDEX ix_leave_requests_employee_id ON leave_requests(employee_id)")
    op.execute("CREATE INDEX ix_leave_requests_status      ON leave_requests(status)")

    # ── 8. notifications ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id         UUID PRIMARY KEY,
            company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            user_id    UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type       notification_type NOT NULL DEFAULT 'info',
            title      VARCHAR(200) NOT NULL,
            message    TEXT NOT NULL,
            category   VARCHAR(50),
            data       JSONB,
            is_read    BOOLEAN NOT NULL DEFAULT FALSE,
            read_at    TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_notifications_company_id ON notifications(company_id)")
    op.execute("CREATE INDEX ix_notifications_user_read  ON notifications(user_id, is_read)")

    # ── 9. payroll_configs / payroll_periods / payroll_records ────────────
    op.execute("""
        CREATE TABLE payroll_configs (
            id            UUID PRIMARY KEY,
            company_id    UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            pay_frequency pay_frequency NOT NULL DEFAULT 'MONTHLY',
            pay_day       INTEGER NOT NULL DEFAULT 1,
            currency      VARCHAR(3) NOT NULL DEFAULT 'USD',
            tax_settings  JSONB,
            deductions    JSONB,
            allowances    JSONB,
            created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_payroll_configs_company UNIQUE (company_id)
        )
    """)
    op.execute("CREATE INDEX ix_payroll_configs_company_id ON payroll_configs(company_id)")

    op.execute("""
        CREATE TABLE payroll_periods (
            id           UUID PRIMARY KEY,
            company_id   UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            start_date   DATE NOT NULL,
            end_date     DATE NOT NULL,
            status       payroll_status NOT NULL DEFAULT 'DRAFT',
            processed_at TIMESTAMPTZ,
            approved_at  TIMESTAMPTZ,
            approved_by  UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payroll_periods_dates CHECK (end_date >= start_date)
        )
    """)
    op.execute("CREATE INDEX ix_payroll_periods_company_id ON payroll_periods(company_id)")

    op.execute("""
        CREATE TABLE payroll_records (
            id               UUID PRIMARY KEY,
            company_id       UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            employee_id      UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            period_id        UUID NOT NULL REFERENCES payroll_periods(id) ON DELETE CASCADE,
            pay_period_start DATE NOT NULL,
            pay_period_end   DATE NOT NULL,
            gross_salary     NUMERIC(12, 2) NOT NULL,
            total_deductions NUMERIC(12, 2) NOT NULL DEFAULT 0,
            net_salary       NUMERIC(12, 2) NOT NULL DEFAULT 0,
            working_days     INTEGER,
            deductions       JSONB,
            allowances       JSONB,
            status           payroll_status NOT NULL DEFAULT 'DRAFT',
            processed_at     TIMESTAMPTZ,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_payroll_records_employee_period UNIQUE (employee_id, period_id)
        )
    """)
    op.execute("CREATE INDEX ix_payroll_records_company_id  ON payroll_records(company_id)")
    op.execute("CREATE INDEX ix_payroll_records_employee_id ON payroll_records(employee_id)")
    op.execute("CREATE INDEX ix_payroll_records_period_id   ON payroll_records(period_id)")

    # ── 10. files ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE files (
            id           UUID PRIMARY KEY,
            company_id   UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            filename     VARCHAR(255) NOT NULL,
            storage_name VARCHAR(300) NOT NULL UNIQUE,
            mimetype     VARCHAR(100) NOT NULL,
            size         BIGINT NOT NULL,
            description  TEXT,
            tags         JSONB NOT NULL DEFAULT '[]'::jsonb,
            entity_type  VARCHAR(50),
            entity_id    VARCHAR(64),
            uploaded_by  UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_files_company_id ON files(company_id)")
    op.execute("CREATE INDEX ix_files_entity     ON files(entity_type, entity_id)")

    # ── 11. otps ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE otps (
            id           UUID PRIMARY KEY,
            phone_number VARCHAR(20) NOT NULL,
            type         otp_type NOT NULL,
            purpose      VARCHAR(100),
            code_hash    VARCHAR(128) NOT NULL,
            salt         VARCHAR(32)  NOT NULL,
            status       otp_status NOT NULL DEFAULT 'PENDING',
            attempts     INTEGER NOT NULL DEFAULT 0,
            max_attempts INTEGER NOT NULL DEFAULT 3,
            expires_at   TIMESTAMPTZ NOT NULL,
            verified_at  TIMESTAMPTZ,
            company_id   UUID REFERENCES companies(id) ON DELETE SET NULL,
            user_id      UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_otps_phone_type_status ON otps(phone_number, type, status)"
    )

    # ── 12. audit_logs ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_logs (
            id          UUID PRIMARY KEY,
            company_id  UUID REFERENCES companies(id) ON DELETE CASCADE,
            user_id     UUID REFERENCES users(id) ON DELETE SET NULL,
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   VARCHAR(64) NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            ip_address  VARCHAR(45),
            user_agent  TEXT,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_logs_action         ON audit_logs(action)")
    op.execute("CREATE INDEX ix_audit_logs_entity         ON audit_logs(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_logs_company_created ON audit_logs(company_id, created_at)")

    # ── 13. system_configs / system_logs ──────────────────────────────────
    op.execute("""
        CREATE TABLE system_configs (
            id          UUID PRIMARY KEY,
            key         VARCHAR(100) NOT NULL UNIQUE,
            value       JSONB NOT NULL,
            description TEXT,
            is_active   BOOLEAN NOT NULL DEFAULT TRUE,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE system_logs (
            id         UUID PRIMARY KEY,
            level      log_level NOT NULL,
            message    TEXT NOT NULL,
            context    JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_system_logs_level ON system_logs(level)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "system_logs",
        "system_configs",
        "audit_logs",
        "otps",
        "files",
        "payroll_records",
        "payroll_periods",
        "payroll_configs",
        "notifications",
        "leave_requests",
        "leave_balances",
        "leave_types",
        "integration_logs",
        "integrations",
        "form_submissions",
        "form_fields",
        "forms",
        "employees",
        "users",
        "roles",
        "companies",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
