__title__ = "TaxBitRec"
__version__ = "0.1.0"
