"""create phase tracking tables"""

from alembic import op
import sqlalchemy as sa

revision = '3c1f9a7e2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(80), nullable=False),
        sa.Column('last_name', sa.String(80), nullable=True),
        sa.Column('email', sa.String(120), nullable=True, unique=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('counselor_id', sa.Integer(), nullable=True),
        sa.Column('marketing_owner_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='ACTIVE'),
        sa.Column('notes', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_students_counselor_id', 'students', ['counselor_id'])
    op.create_index('ix_students_marketing_owner_id', 'students', ['marketing_owner_id'])

    op.create_table(
        'application_countries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('country', sa.String(80), nullable=False),
        sa.Column('country_key', sa.String(80), nullable=False),
        sa.Column('current_phase', sa.String(64), nullable=False, server_default='DOCUMENT_COLLECTION'),
        sa.Column('notes', sa.JSON(), nullable=True),
        sa.Column('total_applications', sa.Integer(), nullable=True, server_default=sa.text('0')),
        sa.Column('last_updated', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('student_id', 'country_key', name='uq_application_country_student_key'),
    )
    op.create_index('ix_application_countries_student_id', 'application_countries', ['student_id'])
    op.create_index('ix_application_countries_country_key', 'application_countries', ['country_key'])
    op.create_index('ix_application_countries_current_phase', 'application_countries', ['current_phase'])

    op.create_table(
        'phase_metadata',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('country_key', sa.String(80), nullable=False),
        sa.Column('phase_name', sa.String(64), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='Pending'),
        sa.Column('reopen_count', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('max_reopen_allowed', sa.Integer(), nullable=False, server_default=sa.text('2')),
        sa.Column('final_edit_allowed', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('student_id', 'country_key', 'phase_name', name='unique_student_country_phase'),
    )
    op.create_index('ix_phase_metadata_student_id', 'phase_metadata', ['student_id'])
    op.create_index('ix_phase_metadata_country_key', 'phase_metadata', ['country_key'])
    op.create_index('ix_phase_metadata_phase_name', 'phase_metadata', ['phase_name'])
    op.create_index('ix_phase_metadata_status', 'phase_metadata', ['status'])

    op.create_table(
        'country_application_processes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('country', sa.String(80), nullable=False),
        sa.Column('country_key', sa.String(80), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('steps', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_country_application_processes_country_key', 'country_application_processes', ['country_key'])

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('type', sa.String(64), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='PENDING'),
        sa.Column('file_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_documents_student_id', 'documents', ['student_id'])
    op.create_index('ix_documents_type', 'documents', ['type'])

    op.create_table(
        'universities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('country', sa.String(80), nullable=True),
        sa.Column('city', sa.String(80), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )

    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_activities_type', 'activities', ['type'])
    op.create_index('ix_activities_student_id', 'activities', ['student_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(40), nullable=True, server_default='application_progress'),
        sa.Column('title', sa.String(200), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('priority', sa.String(16), nullable=True, server_default='medium'),
        sa.Column('lead_id', sa.Integer(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade():
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_activities_student_id', table_name='activities')
    op.drop_index('ix_activities_type', table_name='activities')
    op.drop_table('activities')
    op.drop_table('universities')
    op.drop_index('ix_documents_type', table_name='documents')
    op.drop_index('ix_documents_student_id', table_name='documents')
    op.drop_table('documents')
    op.drop_index('ix_country_application_processes_country_key', table_name='country_application_processes')
    op.drop_table('country_application_processes')
    op.drop_index('ix_phase_metadata_status', table_name='phase_metadata')
    op.drop_index('ix_phase_metadata_phase_name', table_name='phase_metadata')
    op.drop_index('ix_phase_metadata_country_key', table_name='phase_metadata')
    op.drop_index('ix_phase_metadata_student_id', table_name='phase_metadata')
    op.drop_table('phase_metadata')
    op.drop_index('ix_application_countries_current_phase', table_name='application_countries')
    op.drop_index('ix_application_countries_country_key', table_name='application_countries')
    op.drop_index('ix_application_countries_student_id', table_name='application_countries')
    op.drop_table('application_countries')
    op.drop_index('ix_students_marketing_owner_id', table_name='students')
    op.drop_index('ix_students_counselor_id', table_name='students')
    op.drop_table('students')
