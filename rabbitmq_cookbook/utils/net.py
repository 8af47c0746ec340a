"""网络工具 — URL 校验、安装包下载、校验和验证"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import urllib.request
from pathlib import Path
from urllib.parse import urlparse

from rabbitmq_cookbook.core.exceptions import DownloadError, ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def download_file(url: str, dest: Path) -> Path:
    """下载到同目录临时文件，完整后再 rename 到 dest

    dest 只会是完整文件；任何失败都清理临时文件，
    普通异常统一包装为 DownloadError，中断类异常原样抛出。
    不做重试，重试策略属于调用方（或外层部署引擎）。
    """
    validate_url_scheme(url, context=f"download {dest.name}")
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.info("  下载: %s -> %s", url, dest)
    fd, tmp = tempfile.mkstemp(dir=str(dest.parent), suffix=".part")
    os.close(fd)
    try:
        urllib.request.urlretrieve(url, tmp)  # nosec B310
        os.chmod(tmp, 0o644)
        os.replace(tmp, str(dest))
    except Exception as e:
        raise DownloadError(f"下载失败: {url} - {e}") from e
    finally:
        Path(tmp).unlink(missing_ok=True)
    return dest


def sha256_of(path: Path) -> str:
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def verify_checksum(path: Path, expected: str) -> None:
    """校验 sha256，不匹配时抛 DownloadError"""
    actual = sha256_of(path)
    if actual != expected.lower():
        raise DownloadError(
            f"校验和不匹配 {path}: 期望 {expected}, 实际 {actual}",
        )
    logger.info("  校验和通过: %s", path.name)
