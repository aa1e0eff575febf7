from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt

# Initialize extensions without app
db = SQLAlchemy()
bcrypt = Bcrypt()

# Auth policies, configured from app.config in create_app()
from services.lockout_policy import LockoutPolicy
from services.session_manager import SessionManager
lockout_policy = LockoutPolicy()
session_manager = SessionManager()
