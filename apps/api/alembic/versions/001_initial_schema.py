"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'app_user',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('display_name', sa.Text(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('gender', sa.Text(), nullable=True),
        sa.Column('height_cm', sa.Float(), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('activity_level', sa.Text(), nullable=True),
        sa.Column('financial_status', sa.Text(), nullable=True),
        sa.Column('fitness_goal', sa.Text(), nullable=True),
        sa.Column('daily_calorie_goal', sa.Integer(), nullable=False, server_default='2000'),
        sa.Column('onboarding_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'workout_plan',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('plan_name', sa.Text(), nullable=False),
        sa.Column('plan_description', sa.Text(), nullable=True),
        sa.Column('fitness_goal', sa.Text(), nullable=False),
        sa.Column('difficulty_level', sa.Text(), nullable=False),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ),
    )
    op.create_index('ix_workout_plan_user_id', 'workout_plan', ['user_id'])
    op.create_index('ix_workout_plan_user_created', 'workout_plan', ['user_id', 'created_at'])

    op.create_table(
        'workout_exercise',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('workout_plan_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('exercise_name', sa.Text(), nullable=False),
        sa.Column('exercise_description', sa.Text(), nullable=True),
        sa.Column('target_sets', sa.Integer(), nullable=False),
        sa.Column('target_reps', sa.Integer(), nullable=False),
        sa.Column('rest_seconds', sa.Integer(), nullable=False),
        sa.Column('equipment_needed', postgresql.JSONB(), nullable=False),
        sa.Column('muscle_groups', postgresql.JSONB(), nullable=False),
        sa.Column('exercise_order', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['workout_plan_id'], ['workout_plan.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_workout_exercise_workout_plan_id', 'workout_exercise', ['workout_plan_id'])

    op.create_table(
        'workout_set_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('workout_plan_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('exercise_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('set_number', sa.Integer(), nullable=False),
        sa.Column('reps_completed', sa.Integer(), nullable=False),
        sa.Column('weight_used', sa.Float(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ),
        sa.ForeignKeyConstraint(['workout_plan_id'], ['workout_plan.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['exercise_id'], ['workout_exercise.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_workout_set_log_user_plan_date', 'workout_set_log', ['user_id', 'workout_plan_id', 'date'])

    op.create_table(
        'workout_session',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('workout_plan_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_duration_minutes', sa.Float(), nullable=True),
        sa.Column('total_volume_kg', sa.Float(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ),
        sa.ForeignKeyConstraint(['workout_plan_id'], ['workout_plan.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_workout_session_user_date', 'workout_session', ['user_id', 'date'])

    op.create_table(
        'activity_completion',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('activity_type', sa.Text(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('intensity', sa.Integer(), nullable=False),
        sa.Column('calories_burned', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ),
    )
    op.create_index('ix_activity_completion_user_date', 'activity_completion', ['user_id', 'date'])

    op.create_table(
        'meal',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('meal_type', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('calories', sa.Float(), nullable=False, server_default='0'),
        sa.Column('protein_grams', sa.Float(), nullable=False, server_default='0'),
        sa.Column('carbs_grams', sa.Float(), nullable=False, server_default='0'),
        sa.Column('fats_grams', sa.Float(), nullable=False, server_default='0'),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('analysis_method', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ),
    )
    op.create_index('ix_meal_user_date', 'meal', ['user_id', 'date'])

    op.create_table(
        'meal_plan',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('days', postgresql.JSONB(), nullable=False),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ),
    )
    op.create_index('ix_meal_plan_user_id', 'meal_plan', ['user_id'])

    op.create_table(
        'meal_completion',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('meal_plan_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('day_number', sa.Integer(), nullable=False),
        sa.Column('meal_type', sa.Text(), nullable=False),
        sa.Column('calories', sa.Float(), nullable=False, server_default='0'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ),
        sa.ForeignKeyConstraint(['meal_plan_id'], ['meal_plan.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'meal_plan_id', 'day_number', 'meal_type', name='uq_meal_completion_slot'),
    )


def downgrade() -> None:
    op.drop_table('meal_completion')
    op.drop_index('ix_meal_plan_user_id', table_name='meal_plan')
    op.drop_table('meal_plan')
    op.drop_index('ix_meal_user_date', table_name='meal')
    op.drop_table('meal')
    op.drop_index('ix_activity_completion_user_date', table_name='activity_completion')
    op.drop_table('activity_completion')
    op.drop_index('ix_workout_session_user_date', table_name='workout_session')
    op.drop_table('workout_session')
    op.drop_index('ix_workout_set_log_user_plan_date', table_name='workout_set_log')
    op.drop_table('workout_set_log')
    op.drop_index('ix_workout_exercise_workout_plan_id', table_name='workout_exercise')
    op.drop_table('workout_exercise')
    op.drop_index('ix_workout_plan_user_created', table_name='workout_plan')
    op.drop_index('ix_workout_plan_user_id', table_name='workout_plan')
    op.drop_table('workout_plan')
    op.drop_table('app_user')
