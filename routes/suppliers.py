from flask import Blueprint, render_template, request, redirect, url_for, flash

from errors import ValidationError, NotFound, ReferentialConflict
from middleware.session_middleware import current_record, setup_auth_middleware
from services import inventory_service
from services.integrity_guard import integrity_guard
from utils.helpers import remember_input, pop_old_input

suppliers_bp = Blueprint('suppliers_bp', __name__, url_prefix='/suppliers')
setup_auth_middleware(suppliers_bp)


def _not_found(e):
    flash(e.message, 'error')
    return redirect(url_for('suppliers_bp.index'))


@suppliers_bp.route('/', methods=['GET'], strict_slashes=False)
def index():
    suppliers = inventory_service.list_suppliers()
    return render_template('suppliers/index.html', title='Suppliers List', suppliers=suppliers)


@suppliers_bp.route('/new', methods=['GET'])
def new():
    return render_template('suppliers/new.html', title='Add New Supplier',
                           old_input=pop_old_input())


@suppliers_bp.route('/', methods=['POST'], strict_slashes=False)
def create():
    try:
        inventory_service.create_supplier(request.form)
    except ValidationError as e:
        flash(e.message, 'error')
        remember_input(request.form)
        return redirect(url_for('suppliers_bp.new'))

    flash('Supplier created successfully', 'success')
    return redirect(url_for('suppliers_bp.index'))


@suppliers_bp.route('/<supplier_id>', methods=['GET'])
def show(supplier_id):
    try:
        supplier = inventory_service.get_supplier(supplier_id)
    except NotFound as e:
        return _not_found(e)
    products = inventory_service.supplier_products(supplier)
    return render_template('suppliers/show.html', title=f'Supplier: {supplier.name}',
                           supplier=supplier, products=products)


@suppliers_bp.route('/<supplier_id>/edit', methods=['GET'])
def edit(supplier_id):
    try:
        supplier = inventory_service.get_supplier(supplier_id)
    except NotFound as e:
        return _not_found(e)
    return render_template('suppliers/edit.html', title=f'Edit Supplier: {supplier.name}',
                           supplier=supplier, old_input=pop_old_input())


@suppliers_bp.route('/<supplier_id>', methods=['PUT', 'PATCH'])
def update(supplier_id):
    try:
        inventory_service.update_supplier(supplier_id, request.form)
    except NotFound as e:
        return _not_found(e)
    except ValidationError as e:
        flash(e.message, 'error')
        remember_input(request.form)
        return redirect(url_for('suppliers_bp.edit', supplier_id=supplier_id))

    flash('Supplier updated successfully', 'success')
    return redirect(url_for('suppliers_bp.index'))


@suppliers_bp.route('/<supplier_id>', methods=['DELETE'])
def delete(supplier_id):
    force = request.args.get('force', '').lower() in ('1', 'true', 'yes')
    try:
        if force:
            record = current_record()
            if record is None or not record.is_admin:
                flash('Access denied. Admin privileges required.', 'error')
                return redirect(url_for('suppliers_bp.index'))
            removed = integrity_guard.cascade_delete_supplier(supplier_id)
            flash(f'Supplier and {removed} product(s) deleted successfully', 'success')
        else:
            integrity_guard.delete_supplier(supplier_id)
            flash('Supplier deleted successfully', 'success')
    except NotFound as e:
        return _not_found(e)
    except ReferentialConflict as e:
        flash(e.message, 'error')

    return redirect(url_for('suppliers_bp.index'))
