from flask import Blueprint, render_template, redirect, url_for

main_bp = Blueprint('main_bp', __name__, url_prefix='')


@main_bp.route('/')
def index():
    return render_template('index.html', title='Product Supplier Management - Home')


@main_bp.route('/dashboard')
def dashboard():
    return redirect(url_for('auth_bp.dashboard'))
