import click

from models import db, User, APPROVED


def register_commands(app):
    @app.cli.command('create-admin')
    @click.option('--name', required=True)
    @click.option('--email', required=True)
    @click.option('--password', required=True, prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(name, email, password):
        """Create an approved administrator account."""
        db.create_all()
        email = email.strip().lower()
        if User.query.filter_by(email=email).first():
            raise click.ClickException(f'User with email {email} already exists')

        admin = User(name=name, email=email, is_admin=True, is_verified=True, status=APPROVED)
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        click.echo(f'Admin {admin.email} created with id {admin.id}')
