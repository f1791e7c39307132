# Services package init
"""
catscii — Services Layer
=========================

What:  The request pipeline, independent of HTTP.

Service Inventory:
    - ImageSource (abstract): fetch one image's bytes
      - CataasImageSource: direct download
      - TheCatApiImageSource: metadata search, then download
    - decode_image / AsciiArtConverter: bytes → bitmap → HTML document
    - CatArtService: runs the three steps in order inside one span
"""
