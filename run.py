#!/usr/bin/env python3
"""Application entry point"""
import os
import sys
from sqlalchemy.exc import SQLAlchemyError

def init_database():
    """Initialize the database"""
    from microlend import create_app, db
    app = create_app(os.getenv('FLASK_ENV') or 'development')
    with app.app_context():
        db.create_all()
        app.logger.info('Database initialized at %s', app.config['SQLALCHEMY_DATABASE_URI'])
        print("Database initialized!")

def create_admin_user():
    """Create an admin user and default system settings"""
    from microlend import create_app, db
    from microlend.models import User, SystemSettings

    app = create_app(os.getenv('FLASK_ENV') or 'development')

    with app.app_context():
        db.create_all()

        existing_admin = User.query.filter_by(username='admin').first()
        if existing_admin:
            print("Admin user already exists!")
            return

        admin = User(
            username='admin',
            email='admin@microlend.local',
            full_name='System Administrator',
            role='admin',
            is_active=True
        )
        admin.set_password(os.getenv('ADMIN_PASSWORD') or 'admin123')
        admin.set_role_permissions()
        db.session.add(admin)

        if not SystemSettings.query.first():
            db.session.add(SystemSettings(
                app_name=app.config['DEFAULT_APP_NAME'],
                currency=app.config['DEFAULT_CURRENCY'],
                late_payment_penalty_percentage=app.config['DEFAULT_PENALTY_RATE'],
                penalty_type=app.config['DEFAULT_PENALTY_TYPE']
            ))

        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            app.logger.exception('Could not create admin user')
            sys.exit(1)

        print("Admin user created successfully!")
        print("Username: admin")
        print("Please change the password after first login!")

if __name__ == '__main__':
    if len(sys.argv) > 1:
        command = sys.argv[1]
        if command == 'create-admin':
            create_admin_user()
        elif command == 'init-db':
            init_database()
        else:
            print("Unknown command: {}".format(command))
            print("Available commands: create-admin, init-db")
            sys.exit(1)
    else:
        from microlend import create_app
        app = create_app(os.getenv('FLASK_ENV') or 'development')
        app.run(host='0.0.0.0', port=5000, debug=app.config.get('DEBUG', False))
