from __future__ import annotations

from mythforge.cli import main

if __name__ == "__main__":
    main()
