# Overview: Shared extension objects, bound to the app in create_app().

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# SQLite cannot alter constraints in place: revisions go through batch mode
migrate = Migrate(render_as_batch=True, compare_type=True)
