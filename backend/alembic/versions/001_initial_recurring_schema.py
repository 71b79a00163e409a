"""initial recurring engine schema

Revision ID: 001
Revises:
Create Date: 2024-06-20 09:00:00
"""

from alembic import op
import sqlalchemy as sa


FREQUENCIES = ('weekly', 'biweekly', 'semimonthly', 'monthly', 'quarterly', 'yearly', 'irregular')
CONFIDENCES = ('high', 'medium', 'low')


def upgrade() -> None:
    op.create_table(
        'transactions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('date', sa.Date(), nullable=False, index=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('raw_description', sa.Text(), nullable=False),
        sa.Column('merchant_name', sa.String(255), nullable=True),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('is_income', sa.Boolean(), nullable=True),
        sa.Column('income_type', sa.String(50), nullable=True),
        sa.Column('ignore_type', sa.Enum('none', 'budget', 'all', name='ignoretype'), nullable=False),
        sa.Column('account_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_transaction_user_date', 'transactions', ['user_id', 'date'])

    op.create_table(
        'recurring_patterns',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('merchant_key', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('frequency', sa.Enum(*FREQUENCIES, name='frequency'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('average_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('is_income', sa.Boolean(), nullable=False),
        sa.Column('pay_day', sa.Integer(), nullable=True),
        sa.Column('next_expected_date', sa.Date(), nullable=True),
        sa.Column('last_seen_date', sa.Date(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('confidence', sa.Enum(*CONFIDENCES, name='confidence'), nullable=False),
        sa.Column('occurrences', sa.Integer(), nullable=False),
        sa.Column('bill_type', sa.String(50), nullable=True),
        sa.Column('source', sa.Enum('manual', 'ai', 'basic', name='patternsource'), nullable=False),
        sa.Column('last_analyzed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'merchant_key', name='uq_recurring_pattern_user_key'),
    )

    op.create_table(
        'recurring_suggestions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('merchant_key', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('frequency', sa.Enum(*FREQUENCIES, name='frequency'), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('average_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('is_income', sa.Boolean(), nullable=False),
        sa.Column('pay_day', sa.Integer(), nullable=True),
        sa.Column('next_expected_date', sa.Date(), nullable=True),
        sa.Column('last_seen_date', sa.Date(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('confidence', sa.Enum(*CONFIDENCES, name='confidence'), nullable=False),
        sa.Column('occurrences', sa.Integer(), nullable=False),
        sa.Column('bill_type', sa.String(50), nullable=True),
        sa.Column('detection_reason', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('pending', 'confirmed', 'denied', name='suggestionstatus'),
                  nullable=False, index=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'merchant_key', name='uq_recurring_suggestion_user_key'),
    )

    op.create_table(
        'recurring_dismissals',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('merchant_key', sa.String(255), nullable=False),
        sa.Column('original_name', sa.String(255), nullable=True),
        sa.Column('reason', sa.String(255), nullable=True),
        sa.Column('denial_reason', sa.Text(), nullable=True),
        sa.Column('keywords', sa.JSON(), nullable=True),
        sa.Column('dismissed_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'merchant_key', name='uq_recurring_dismissal_user_key'),
    )

    op.create_table(
        'income_sources',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('merchant_key', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('income_type', sa.Enum(
            'payroll', 'government', 'retirement', 'self_employment', 'investment',
            'rental', 'refund', 'transfer', 'other', name='incometype'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('average_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('frequency', sa.Enum(*FREQUENCIES, name='frequency'), nullable=False),
        sa.Column('pay_day', sa.Integer(), nullable=True),
        sa.Column('employer_name', sa.String(255), nullable=True),
        sa.Column('next_expected_date', sa.Date(), nullable=True),
        sa.Column('last_received_date', sa.Date(), nullable=True),
        sa.Column('first_seen_date', sa.Date(), nullable=True),
        sa.Column('total_received', sa.Numeric(14, 2), nullable=False),
        sa.Column('occurrences', sa.Integer(), nullable=False),
        sa.Column('confidence', sa.Enum(*CONFIDENCES, name='confidence'), nullable=False),
        sa.Column('confidence_score', sa.Float(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'merchant_key', name='uq_income_source_user_key'),
    )

    op.create_table(
        'transaction_rules',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('match_pattern', sa.String(255), nullable=False),
        sa.Column('match_field', sa.String(50), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('set_category', sa.String(100), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'analysis_cache',
        sa.Column('cache_key', sa.String(255), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('cached_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False, index=True),
    )


def downgrade() -> None:
    op.drop_table('analysis_cache')
    op.drop_table('transaction_rules')
    op.drop_table('income_sources')
    op.drop_table('recurring_dismissals')
    op.drop_table('recurring_suggestions')
    op.drop_table('recurring_patterns')
    op.drop_index('idx_transaction_user_date', table_name='transactions')
    op.drop_table('transactions')
