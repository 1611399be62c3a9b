"""
agency_modules -- business modules layered on the ledger kernel.

Currently the IVA (value-added tax) books.  Modules import from
agency_kernel; the kernel never imports from here.
"""
