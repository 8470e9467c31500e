"""Create user, application, application_review and activity_log tables

Revision ID: 001
Revises:
Create Date: 2026-01-04 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Reusable updated_at trigger function
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = NOW();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    # Create user table
    op.create_table(
        'user',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('role', sa.String(32), server_default='user', nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('status', sa.String(16), server_default='ACTIVE', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_user_email'),
        sa.CheckConstraint(
            "role IN ('user', 'junior_reviewer', 'compliance_officer', 'admin')",
            name='ck_user_role'
        ),
        sa.CheckConstraint("status IN ('ACTIVE', 'DISABLED')", name='ck_user_status')
    )

    op.create_index('idx_user_role_status', 'user', ['role', 'status'])

    op.execute("""
        CREATE TRIGGER update_user_updated_at
        BEFORE UPDATE ON "user"
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)

    # Create application table
    op.create_table(
        'application',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('owner_id', sa.String(36), nullable=False),
        sa.Column('full_name', sa.Text(), nullable=False),
        sa.Column('guardian_name', sa.Text(), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('phone', sa.String(32), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('national_id', sa.String(32), nullable=False),
        sa.Column('typed_signature', sa.Text(), nullable=False),
        sa.Column('document_type', sa.Text(), nullable=False),
        sa.Column('required_by_date', sa.Date(), nullable=False),
        sa.Column('department', sa.Text(), nullable=True),
        sa.Column('document_key', sa.Text(), nullable=False),
        sa.Column('document_filename', sa.Text(), nullable=False),
        sa.Column('document_size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('sealed_document_key', sa.Text(), nullable=True),
        sa.Column('verification_code', sa.String(64), nullable=True),
        sa.Column('status', sa.String(32), server_default='submitted', nullable=False),
        sa.Column('current_step', sa.Integer(), server_default='1', nullable=False),
        sa.Column('review_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('verification_code', name='uq_application_verification_code'),
        sa.CheckConstraint(
            "status IN ('submitted', 'junior_review', 'compliance_review', 'approved', 'rejected')",
            name='ck_application_status'
        ),
        sa.CheckConstraint('current_step BETWEEN 1 AND 3', name='ck_application_current_step'),
        sa.CheckConstraint('review_count >= 0', name='ck_application_review_count')
    )

    op.create_index('ix_application_owner_id', 'application', ['owner_id'])
    op.create_index('ix_application_status', 'application', ['status'])
    op.create_index('idx_application_created', 'application', [sa.text('created_at DESC')])

    op.execute("""
        CREATE TRIGGER update_application_updated_at
        BEFORE UPDATE ON application
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)

    # Create application_review table (append-only)
    op.create_table(
        'application_review',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('application_id', sa.String(36), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('reviewer_role', sa.String(32), nullable=False),
        sa.Column('reviewer_id', sa.String(36), nullable=False),
        sa.Column('reviewer_name', sa.Text(), nullable=False),
        sa.Column('action', sa.String(16), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['application_id'], ['application.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('application_id', 'sequence', name='uq_application_review_sequence'),
        sa.CheckConstraint(
            "reviewer_role IN ('junior_reviewer', 'compliance_officer')",
            name='ck_application_review_role'
        ),
        sa.CheckConstraint("action IN ('approved', 'rejected')", name='ck_application_review_action')
    )

    op.create_index('idx_application_review_reviewer', 'application_review', ['application_id', 'reviewer_id'])

    # Create activity_log table (append-only)
    op.create_table(
        'activity_log',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('actor_id', sa.String(36), nullable=False),
        sa.Column('actor_name', sa.Text(), nullable=False),
        sa.Column('actor_role', sa.String(32), nullable=False),
        sa.Column('actor_email', sa.String(320), nullable=True),
        sa.Column('action_type', sa.String(32), nullable=False),
        sa.Column('target_type', sa.String(16), nullable=False),
        sa.Column('target_id', sa.String(36), nullable=False),
        sa.Column('target_name', sa.Text(), nullable=True),
        sa.Column('details', sa.Text(), nullable=False),
        sa.Column('metadata_json', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index('ix_activity_log_created_at', 'activity_log', ['created_at'])
    op.create_index('ix_activity_log_actor_id', 'activity_log', ['actor_id'])
    op.create_index('ix_activity_log_action_type', 'activity_log', ['action_type'])


def downgrade():
    # Drop activity_log
    op.drop_index('ix_activity_log_action_type', table_name='activity_log')
    op.drop_index('ix_activity_log_actor_id', table_name='activity_log')
    op.drop_index('ix_activity_log_created_at', table_name='activity_log')
    op.drop_table('activity_log')

    # Drop application_review
    op.drop_index('idx_application_review_reviewer', table_name='application_review')
    op.drop_table('application_review')

    # Drop application
    op.execute('DROP TRIGGER IF EXISTS update_application_updated_at ON application')
    op.drop_index('idx_application_created', table_name='application')
    op.drop_index('ix_application_status', table_name='application')
    op.drop_index('ix_application_owner_id', table_name='application')
    op.drop_table('application')

    # Drop user
    op.execute('DROP TRIGGER IF EXISTS update_user_updated_at ON "user"')
    op.drop_index('idx_user_role_status', table_name='user')
    op.drop_table('user')

    op.execute('DROP FUNCTION IF EXISTS update_updated_at_column()')
