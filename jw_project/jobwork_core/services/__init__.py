# Services are imported from their own modules, e.g.
# from jobwork_core.services.documents import PurchaseOrderController
