"""Lead CRM attendance core.

Feature packages (attendance, stats, activity, users) each carry a model,
a repository interface, a MySQL repository, a service and a thin Flask
controller.
"""
