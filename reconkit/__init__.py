"""Building blocks for DNS reconnaissance: addresses, names, records, ASN data, crawling and zone transfers."""

__version__ = "0.1.0"