from flask import Blueprint, render_template, request, redirect, url_for, flash

from errors import ValidationError, NotFound, InvalidReference
from middleware.session_middleware import setup_auth_middleware
from services import inventory_service
from utils.helpers import remember_input, pop_old_input

products_bp = Blueprint('products_bp', __name__, url_prefix='/products')
setup_auth_middleware(products_bp)


def _not_found(e):
    flash(e.message, 'error')
    return redirect(url_for('products_bp.index'))


@products_bp.route('/', methods=['GET'], strict_slashes=False)
def index():
    products = inventory_service.list_products()
    return render_template('products/index.html', title='Products List', products=products)


@products_bp.route('/new', methods=['GET'])
def new():
    suppliers = inventory_service.list_suppliers()
    return render_template('products/new.html', title='Add New Product',
                           suppliers=suppliers, old_input=pop_old_input())


@products_bp.route('/', methods=['POST'], strict_slashes=False)
def create():
    try:
        inventory_service.create_product(request.form)
    except (ValidationError, InvalidReference) as e:
        flash(e.message, 'error')
        remember_input(request.form)
        return redirect(url_for('products_bp.new'))

    flash('Product created successfully', 'success')
    return redirect(url_for('products_bp.index'))


@products_bp.route('/<product_id>', methods=['GET'])
def show(product_id):
    try:
        product = inventory_service.get_product(product_id)
    except NotFound as e:
        return _not_found(e)
    return render_template('products/show.html', title=f'Product: {product.name}',
                           product=product)


@products_bp.route('/<product_id>/edit', methods=['GET'])
def edit(product_id):
    try:
        product = inventory_service.get_product(product_id)
    except NotFound as e:
        return _not_found(e)
    suppliers = inventory_service.list_suppliers()
    return render_template('products/edit.html', title=f'Edit Product: {product.name}',
                           product=product, suppliers=suppliers, old_input=pop_old_input())


@products_bp.route('/<product_id>', methods=['PUT', 'PATCH'])
def update(product_id):
    try:
        inventory_service.update_product(product_id, request.form)
    except NotFound as e:
        return _not_found(e)
    except (ValidationError, InvalidReference) as e:
        flash(e.message, 'error')
        remember_input(request.form)
        return redirect(url_for('products_bp.edit', product_id=product_id))

    flash('Product updated successfully', 'success')
    return redirect(url_for('products_bp.index'))


@products_bp.route('/<product_id>', methods=['DELETE'])
def delete(product_id):
    try:
        inventory_service.delete_product(product_id)
    except NotFound as e:
        return _not_found(e)

    flash('Product deleted successfully', 'success')
    return redirect(url_for('products_bp.index'))
