"""FruitFlow command-line interface"""
