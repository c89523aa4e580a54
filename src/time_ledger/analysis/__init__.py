"""Reports and invoices built from rounded totals."""
