"""
Test application factory and configuration.
"""

import pytest
from app import create_app


class TestAppFactory:
    """Test Flask application factory."""

    def test_create_app_development(self):
        """Test app creation with development config."""
        app = create_app('development')
        assert app is not None
        assert app.config['DEBUG'] is True
        assert app.config['TESTING'] is False

    def test_create_app_test(self):
        """Test app creation with test config."""
        app = create_app('test')
        assert app is not None
        assert app.config['TESTING'] is True
        assert app.config['TIMEZONE'] == 'UTC'

    def test_create_app_default(self):
        """Test app creation with default config."""
        app = create_app()
        assert app is not None

    def test_app_has_blueprints(self):
        """Test that the API blueprint is registered."""
        app = create_app('test')
        assert 'api' in app.blueprints

    def test_app_has_extensions(self):
        """Test that extensions are initialized."""
        app = create_app('test')

        # Check login manager
        assert hasattr(app, 'login_manager')

    def test_cli_commands_registered(self):
        """Test that maintenance commands are available on flask CLI."""
        app = create_app('test')
        for name in ('init-db', 'sweep-statuses', 'cleanup-disable-periods', 'expiring-disable-periods'):
            assert name in app.cli.commands


class TestConfig:
    """Test configuration classes."""

    def test_production_requires_secret_key(self, monkeypatch):
        from config import ProductionConfig

        monkeypatch.delenv('SECRET_KEY', raising=False)
        with pytest.raises(ValueError):
            ProductionConfig.validate()

    def test_production_requires_long_secret_key(self, monkeypatch):
        from config import ProductionConfig

        monkeypatch.setenv('SECRET_KEY', 'short')
        with pytest.raises(ValueError):
            ProductionConfig.validate()

    def test_production_valid(self, monkeypatch):
        from config import ProductionConfig

        monkeypatch.setenv('SECRET_KEY', 'x' * 40)
        monkeypatch.setenv('DATABASE_PATH', '/tmp/roombook.db')
        ProductionConfig.validate()


class TestCliCommands:
    """Test the maintenance commands through the CLI runner."""

    def test_sweep_statuses(self, app, venue):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['sweep-statuses'])
        assert result.exit_code == 0
        assert 'reservation(s) updated' in result.output

    def test_cleanup_disable_periods(self, app, venue):
        from database import get_db

        db = get_db()
        db.execute('''
            INSERT INTO room_disable_periods (room_id, owner_id, start_datetime, end_datetime)
            VALUES (?, ?, '2020-01-01 10:00:00', '2020-01-01 12:00:00')
        ''', (venue['gaming_room_id'], venue['owner_id']))
        db.commit()

        runner = app.test_cli_runner()
        result = runner.invoke(args=['cleanup-disable-periods'])
        assert result.exit_code == 0
        assert '1 expired disable period(s) deleted' in result.output

    def test_expiring_disable_periods(self, app, venue):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['expiring-disable-periods', '--hours', '12'])
        assert result.exit_code == 0
        assert '0 period(s) ending within 12h' in result.output
