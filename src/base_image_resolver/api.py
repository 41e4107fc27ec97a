"""Async functional base image operations."""

from typing import Optional

from .core.types import ANONYMOUS, Credentials, LineageConfig, RegistryConfig
from .detect import detect_base_images
from .exceptions import AuthError
from .image.source import digests_for_image
from .models import LayerMatch
from .query.client import LineageClient


async def check_auth(
    credentials: Credentials, config: Optional[LineageConfig] = None
) -> bool:
    """워크스페이스와 API 키가 유효한지 확인합니다.

    Args:
        credentials: 워크스페이스와 API 키 (예: Credentials("A1B2C3", "key"))
        config: lineage 저장소 설정 (기본값: LineageConfig())

    Returns:
        bool: 저장소가 HTTP 200으로 응답하면 True

    Examples:
        # 환경 변수의 자격 증명 확인
        ok = await check_auth(Credentials.from_env())
    """
    async with LineageClient(config) as client:
        return await client.check_auth(credentials)


async def require_auth(
    credentials: Credentials, config: Optional[LineageConfig] = None
) -> None:
    """자격 증명이 거부되면 AuthError를 발생시킵니다.

    Args:
        credentials: 워크스페이스와 API 키
        config: lineage 저장소 설정 (기본값: LineageConfig())

    Raises:
        AuthError: 자격 증명이 없거나 거부된 경우
        TransportError: lineage 저장소에 연결할 수 없는 경우
    """
    if not credentials.is_authenticated:
        raise AuthError("Workspace and API key are required")

    async with LineageClient(config) as client:
        status = await client.auth_status(credentials)
    if status != 200:
        raise AuthError(
            f"Authentication failed for workspace {credentials.workspace!r}: "
            f"status {status}"
        )


async def detect(
    image: str,
    credentials: Credentials = ANONYMOUS,
    config: Optional[LineageConfig] = None,
    registry_config: Optional[RegistryConfig] = None,
) -> list[LayerMatch]:
    """이미지가 어떤 베이스 이미지로부터 빌드되었는지 찾습니다.

    레이어 digest를 읽은 뒤 가장 짧은 레이어 prefix부터 순서대로 lineage
    저장소를 조회합니다. 후보가 없는 prefix는 결과에서 제외됩니다.

    Args:
        image: 이미지 참조 또는 docker save tar 파일 경로
            - 이미지 참조: "nginx:alpine", "ghcr.io/org/app:1.0"
            - tar 파일: "./exports/app.tar"
        credentials: 워크스페이스 자격 증명 (기본값: 익명 공유 저장소 사용)
        config: lineage 저장소 설정 (기본값: LineageConfig())
        registry_config: 레지스트리 설정 (기본값: RegistryConfig())

    Returns:
        list[LayerMatch]: 후보가 있는 레이어 prefix 목록 (짧은 prefix부터)

    Raises:
        ImageNotFoundError: 이미지를 찾을 수 없는 경우
        AuthError: 자격 증명이 주어졌지만 거부된 경우
        QueryError: lineage 저장소 조회 실패 시

    Examples:
        matches = await detect("myapp:latest")
        for match in matches:
            print(match.label, [c.image.digest for c in match.candidates])
    """
    if credentials.is_authenticated:
        await require_auth(credentials, config)

    digests = await digests_for_image(image, registry_config)

    async with LineageClient(config) as client:
        return [
            match
            async for match in detect_base_images(digests, client, credentials)
        ]
