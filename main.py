"""
Description:
    Org Directory 服务入口点

    启动 HTTP Server，对外提供用户资料、头像、上级链与下属查询。
"""

import sys

from org_directory.http_server import main as run_http_server


def main():
    """主入口"""
    try:
        run_http_server()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        sys.stderr.write(f"HTTP Server failed: {e}\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
