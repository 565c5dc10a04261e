"""Services package - annotation I/O, image loading and drawing surfaces"""
