"""
fauxapi 异常定义

核心操作不直接抛出这些异常，而是将异常实例作为 Err 的载荷返回，
由调用方（路由层）决定如何渲染为响应。
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.validation import ValidationIssue


class FauxApiException(Exception):
    """fauxapi 基础异常类"""

    def __init__(self, message: str = '', **details: Any):
        self.message = message
        self.details: Dict[str, Any] = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为可序列化的字典（用于错误响应）"""
        result: Dict[str, Any] = {
            'error': type(self).__name__,
            'message': self.message,
        }
        if self.details:
            result['details'] = self.details
        return result


class ConfigurationError(FauxApiException):
    """资源配置无效"""


class SerializationError(FauxApiException):
    """序列化/反序列化异常"""


class ResourceNotFoundError(FauxApiException):
    """资源（集合）不存在异常"""
    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"Resource '{resource}' not found", resource=resource)


class RecordNotFoundError(FauxApiException):
    """记录不存在异常"""
    def __init__(self, collection: str, pk: Any, primary_key: str = 'id'):
        self.collection = collection
        self.pk = pk
        self.primary_key = primary_key
        super().__init__(
            f"Record with {primary_key}={pk} not found in '{collection}'",
            collection=collection, pk=pk,
        )


class DuplicateKeyError(FauxApiException):
    """主键重复异常"""
    def __init__(self, collection: str, pk: Any, primary_key: str = 'id'):
        self.collection = collection
        self.pk = pk
        self.primary_key = primary_key
        super().__init__(
            f"Record with {primary_key}={pk} already exists in '{collection}'",
            collection=collection, pk=pk,
        )


class RelationshipNotFoundError(FauxApiException):
    """关系未声明异常"""
    def __init__(self, resource: str, relationship: str):
        self.resource = resource
        self.relationship = relationship
        super().__init__(
            f"Relationship '{relationship}' not found for resource '{resource}'",
            resource=resource, relationship=relationship,
        )


class MissingThroughCollectionError(FauxApiException):
    """多对多关系缺少 through 中间集合"""
    def __init__(self, resource: str, relationship: str):
        self.resource = resource
        self.relationship = relationship
        super().__init__(
            f"Many-to-many relationship '{relationship}' on '{resource}' "
            f"requires a 'through' collection",
            resource=resource, relationship=relationship,
        )


class UnsupportedRelationshipTypeError(FauxApiException):
    """不支持的关系类型"""
    def __init__(self, relationship_type: str):
        self.relationship_type = relationship_type
        super().__init__(
            f"Unsupported relationship type: {relationship_type}",
            type=relationship_type,
        )


class ExpansionDepthError(FauxApiException):
    """关系展开路径超过最大深度"""
    def __init__(self, path: str, max_depth: int):
        self.path = path
        self.max_depth = max_depth
        super().__init__(
            f"Expansion depth exceeds maximum ({max_depth}): {path}",
            path=path, max_depth=max_depth,
        )


class ValidationFailedError(FauxApiException):
    """数据验证失败，携带完整的违规列表"""
    def __init__(self, collection: str, issues: List['ValidationIssue']):
        self.collection = collection
        self.issues = list(issues)
        summary = '; '.join(issue.message for issue in self.issues)
        super().__init__(
            f"Validation failed: {summary}",
            collection=collection,
            errors=[issue.to_dict() for issue in self.issues],
        )

    def rules_for(self, field_name: str) -> List[str]:
        """返回某字段触发的全部规则名"""
        return [issue.rule for issue in self.issues if issue.field == field_name]


def describe(error: Optional[BaseException]) -> str:
    """生成用于日志的简短错误描述"""
    if error is None:
        return ''
    return f"{type(error).__name__}: {error}"
