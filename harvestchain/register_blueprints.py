"""
Centralized Blueprint Registration
All blueprints MUST be registered inside register_all_blueprints(app)
"""


def register_all_blueprints(app):

    # Root (health / connectivity)
    from harvestchain.routes.root.root_routes import root_bp
    app.register_blueprint(root_bp)

    # Farmers
    from harvestchain.routes.farmer.farmer_routes import farmer_bp
    app.register_blueprint(farmer_bp)

    # Admin (protected routes are nested inside admin_bp)
    from harvestchain.routes.admin.admin_routes import admin_bp
    app.register_blueprint(admin_bp)

    app.logger.debug("All blueprints registered")
