#!/usr/bin/env python3
"""
订阅文章翻译器 - 主程序入口

功能：
- HTML 感知的分段翻译（保留标签结构）
- 双语对照 / 仅译文 两种显示模式
- AI (OpenAI 兼容接口) 与 Google 翻译

用法：
    # 翻译 HTML / Markdown 文件
    python main.py translate <文件路径> [-o 输出文件] [-m bilingual|translated]

    # 启动 Web 服务
    python main.py server [--port 8000]
"""

import argparse
import asyncio
import sys
from pathlib import Path


def translate_file_cmd(args):
    """翻译单个 HTML / Markdown 文件"""
    from app.deps import get_settings, get_translator_config
    from core.pipeline import HtmlTranslator

    source = Path(args.file)
    if not source.exists():
        print(f"文件不存在: {source}", file=sys.stderr)
        sys.exit(1)

    settings = get_settings()
    translator = HtmlTranslator(
        config=get_translator_config(settings),
        target_lang=args.target or settings.target_language,
        mode=args.mode or settings.translate_display_mode,
        concurrency=args.concurrency or settings.translate_concurrency,
    )

    async def run():
        content = source.read_text(encoding="utf-8")
        return await translator.translate_html(content, service=args.service)

    result = asyncio.run(run())
    if result.error:
        print(f"❌ 翻译失败: [{result.error_code}] {result.error}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result.translated_html, encoding="utf-8")
        print(
            f"✅ 完成: {output_path} (units={result.units_total}, failed={result.units_failed})",
            file=sys.stderr,
        )
    else:
        sys.stdout.write(result.translated_html)


def server_cmd(args):
    """启动 Web 服务"""
    import uvicorn
    from app.main import app
    from app.deps import get_settings

    settings = get_settings()
    host = settings.host
    port = args.port or settings.port

    print(f"启动服务: http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="订阅文章翻译器 - 保留 HTML 结构的文章翻译",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  python main.py translate article.html                 # 输出到 stdout
  python main.py translate article.md -o out.html       # 指定输出文件
  python main.py translate article.html -m translated   # 仅译文
  python main.py server --port 8000                     # 启动 Web 服务
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="可用命令")

    # translate 子命令
    translate_parser = subparsers.add_parser("translate", help="翻译 HTML / Markdown 文件")
    translate_parser.add_argument("file", help="文件路径")
    translate_parser.add_argument("-o", "--output", help="输出文件")
    translate_parser.add_argument("-t", "--target", help="目标语言 (默认: 配置中的 TARGET_LANGUAGE)")
    translate_parser.add_argument(
        "-m", "--mode", choices=["bilingual", "translated"], help="显示模式"
    )
    translate_parser.add_argument("-s", "--service", choices=["ai", "google"], help="强制使用的翻译服务")
    translate_parser.add_argument("-c", "--concurrency", type=int, help="并发窗口大小")
    translate_parser.set_defaults(func=translate_file_cmd)

    # server 子命令
    server_parser = subparsers.add_parser("server", help="启动 Web 服务")
    server_parser.add_argument("-p", "--port", type=int, default=None, help="端口号 (默认: 8000)")
    server_parser.set_defaults(func=server_cmd)
    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
